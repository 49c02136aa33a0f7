"""Debt simplification: net balances → a short list of transfers.

Provides :func:`reduce_balances`, a greedy largest-pair-first matcher.  It
is deterministic and easy to explain but not guaranteed to find the
theoretical minimum number of transfers for every balance distribution.

Ordering contract:

1. Debtors (balance < 0) are sorted most negative first, creditors
   (balance > 0) most positive first.  Zero balances take no part.
2. Ties keep the order of the input mapping, which
   :func:`~tripsplit.ledger.balance.compute_balances` yields in participant
   insertion order.
3. Each step settles ``min(debt, credit)`` between the current pair.
   Transfers smaller than the threshold are not recorded, and a cursor
   moves on once its remaining balance is closer to zero than the
   threshold.
"""

from __future__ import annotations

from collections.abc import Mapping

from tripsplit.config import settings
from tripsplit.ledger.balance import compute_balances
from tripsplit.ledger.models import Person, Settlement, Trip
from tripsplit.ledger.money import Money


def reduce_balances(
    balances: Mapping[Person, Money],
    threshold: int | Money | None = None,
) -> list[Settlement]:
    """Reduce net balances to an ordered list of settlements.

    Args:
        balances: Signed balance per person (positive = is owed).
        threshold: Smallest transfer worth recording.  Defaults to
            ``settings.min_settlement_amount``.

    Returns:
        Settlements in emission order.  Empty when every balance is within
        the threshold of zero ("all settled").
    """
    limit = Money.coerce(settings.min_settlement_amount if threshold is None else threshold)
    # A zero threshold must still retire fully settled cursors.
    retire_below = max(limit, Money(1))

    debtors = sorted(
        ([person, balance] for person, balance in balances.items() if balance < 0),
        key=lambda pair: pair[1],
    )
    creditors = sorted(
        ([person, balance] for person, balance in balances.items() if balance > 0),
        key=lambda pair: pair[1],
        reverse=True,
    )

    settlements: list[Settlement] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(-debtor[1], creditor[1])

        if amount >= limit:
            settlements.append(
                Settlement(from_person=debtor[0], to_person=creditor[0], amount=amount)
            )

        debtor[1] = debtor[1] + amount
        creditor[1] = creditor[1] - amount

        if abs(debtor[1]) < retire_below:
            i += 1
        if abs(creditor[1]) < retire_below:
            j += 1

    return settlements


def settle_trip(trip: Trip, threshold: int | Money | None = None) -> list[Settlement]:
    """Compute balances for *trip* and reduce them in one go."""
    return reduce_balances(compute_balances(trip), threshold)


def apply_settlements(
    balances: Mapping[Person, Money],
    settlements: list[Settlement],
) -> dict[Person, Money]:
    """Return the balances left after every settlement has been paid.

    The payer's balance rises by the amount and the payee's falls by it.
    """
    remaining = dict(balances)
    for s in settlements:
        remaining[s.from_person] = remaining.get(s.from_person, Money.zero()) + s.amount
        remaining[s.to_person] = remaining.get(s.to_person, Money.zero()) - s.amount
    return remaining


def is_settled(
    balances: Mapping[Person, Money],
    threshold: int | Money | None = None,
) -> bool:
    """``True`` when no transfer is worth recording."""
    return not reduce_balances(balances, threshold)
