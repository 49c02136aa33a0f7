"""Balance derivation from ledger replay.

Provides :func:`compute_balances` which computes every participant's net
position by replaying all expenses of a trip.

The balance is **always derived**, never stored.  Each expense credits the
payer with the full amount and debits every split member with the floor
share (:meth:`Money.split`).  The division remainder is never charged to
anyone, so the balances sum to :func:`rounding_residual` rather than to
exactly zero.
"""

from __future__ import annotations

from tripsplit.ledger.models import Expense, Person, Trip
from tripsplit.ledger.money import Money


def compute_balances(trip: Trip) -> dict[Person, Money]:
    """Derive each participant's net balance.

    Args:
        trip: The trip snapshot to replay.

    Returns:
        A dict in participant order mapping each :class:`Person` to a signed
        :class:`Money`:

        - **positive** → the person is owed money
        - **negative** → the person owes money
        - **zero** → settled up

        People referenced by an expense but missing from
        ``trip.participants`` are appended after the known participants.
    """
    balances: dict[Person, Money] = {p: Money.zero() for p in trip.participants}

    for expense in trip.expenses:
        for person, effect in _expense_effects(expense):
            balances[person] = balances.get(person, Money.zero()) + effect

    return balances


def _expense_effects(expense: Expense) -> list[tuple[Person, Money]]:
    """Per-person balance changes caused by a single expense.

    The payer is credited the whole amount; each split member (the payer
    included, when selected) is debited the floor share.
    """
    share = expense.share()
    effects = [(expense.paid_by, expense.amount)]
    effects.extend((person, -share) for person in expense.split_among)
    return effects


def rounding_residual(trip: Trip) -> Money:
    """Sum of the undistributed division remainders over all expenses.

    This is exactly ``sum(compute_balances(trip).values())`` and is bounded
    by ``sum(len(e.split_among) - 1 for e in trip.expenses)``.
    """
    return sum((e.remainder() for e in trip.expenses), Money.zero())
