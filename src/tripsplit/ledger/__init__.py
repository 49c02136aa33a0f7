"""Ledger core: money, models, balances and settlements.

Everything in this package is pure and synchronous.
"""

from tripsplit.ledger.balance import compute_balances, rounding_residual
from tripsplit.ledger.models import (
    Expense,
    ExpenseCategory,
    Person,
    Settlement,
    Trip,
    generate_share_code,
    normalize_share_code,
)
from tripsplit.ledger.money import Money
from tripsplit.ledger.settlement import apply_settlements, is_settled, reduce_balances, settle_trip

__all__ = [
    "Expense",
    "ExpenseCategory",
    "Money",
    "Person",
    "Settlement",
    "Trip",
    "apply_settlements",
    "compute_balances",
    "generate_share_code",
    "is_settled",
    "normalize_share_code",
    "reduce_balances",
    "rounding_residual",
    "settle_trip",
]
