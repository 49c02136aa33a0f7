"""Read-only aggregates over a trip's expenses.

Like balances, every figure here is derived on demand and never stored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from tripsplit.ledger.models import ExpenseCategory, Person, Trip
from tripsplit.ledger.money import Money


def total_expenses(trip: Trip) -> Money:
    """Sum of every expense amount."""
    return sum((e.amount for e in trip.expenses), Money.zero())


def totals_by_category(trip: Trip) -> dict[ExpenseCategory, Money]:
    """Spend per category, in category declaration order.

    Categories without any expense are omitted.
    """
    totals: dict[ExpenseCategory, Money] = {}
    for category in ExpenseCategory:
        amount = sum((e.amount for e in trip.expenses if e.category == category), Money.zero())
        if amount > 0:
            totals[category] = amount
    return totals


def category_percentages(trip: Trip) -> dict[ExpenseCategory, int]:
    """Whole-number share of the total per category (truncated)."""
    total = total_expenses(trip)
    if total <= 0:
        return {}
    return {
        category: amount.units * 100 // total.units
        for category, amount in totals_by_category(trip).items()
    }


def average_per_person(trip: Trip) -> Money:
    """Total spend divided evenly by head count, rounded down."""
    if not trip.participants:
        return Money.zero()
    share, _ = total_expenses(trip).split(len(trip.participants))
    return share


class PersonSpend(BaseModel):
    """How much one participant paid out versus consumed."""

    model_config = ConfigDict(frozen=True)

    person: Person
    paid: Money
    consumed: Money

    @property
    def net(self) -> Money:
        return self.paid - self.consumed


def spend_by_person(trip: Trip) -> list[PersonSpend]:
    """Paid and consumed amounts per participant, in participant order."""
    paid: dict[Person, Money] = {p: Money.zero() for p in trip.participants}
    consumed: dict[Person, Money] = {p: Money.zero() for p in trip.participants}

    for expense in trip.expenses:
        paid[expense.paid_by] = paid.get(expense.paid_by, Money.zero()) + expense.amount
        share = expense.share()
        for person in expense.split_among:
            consumed[person] = consumed.get(person, Money.zero()) + share

    return [PersonSpend(person=p, paid=paid[p], consumed=consumed.get(p, Money.zero())) for p in paid]


class TripSummary(BaseModel):
    """Everything a trip overview screen needs."""

    model_config = ConfigDict(frozen=True)

    total: Money
    by_category: dict[ExpenseCategory, Money]
    category_percentages: dict[ExpenseCategory, int]
    average_per_person: Money
    by_person: list[PersonSpend]
    expense_count: int
    participant_count: int


def summarize(trip: Trip) -> TripSummary:
    return TripSummary(
        total=total_expenses(trip),
        by_category=totals_by_category(trip),
        category_percentages=category_percentages(trip),
        average_per_person=average_per_person(trip),
        by_person=spend_by_person(trip),
        expense_count=len(trip.expenses),
        participant_count=len(trip.participants),
    )
