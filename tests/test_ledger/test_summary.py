"""Tests for trip summary aggregates."""

from __future__ import annotations

from datetime import date

from tripsplit.ledger.models import Expense, ExpenseCategory, Person, Trip
from tripsplit.ledger.money import Money
from tripsplit.ledger.summary import (
    average_per_person,
    category_percentages,
    spend_by_person,
    summarize,
    total_expenses,
    totals_by_category,
)

ALICE = Person(name="Alice")
BOB = Person(name="Bob")
CAROL = Person(name="Carol")


def _trip() -> Trip:
    trip = Trip.create("Bali", (ALICE, BOB, CAROL), date(2025, 8, 1), date(2025, 8, 7))
    expenses = [
        Expense(
            title="Villa",
            amount=Money(900_000),
            paid_by=ALICE,
            split_among=(ALICE, BOB, CAROL),
            category=ExpenseCategory.ACCOMMODATION,
        ),
        Expense(
            title="Nasi goreng",
            amount=Money(60_000),
            paid_by=BOB,
            split_among=(BOB, CAROL),
            category=ExpenseCategory.FOOD,
        ),
        Expense(
            title="Satay",
            amount=Money(40_000),
            paid_by=CAROL,
            split_among=(ALICE, CAROL),
            category=ExpenseCategory.FOOD,
        ),
    ]
    for expense in expenses:
        trip = trip.with_expense(expense)
    return trip


class TestTotals:
    def test_total(self) -> None:
        assert total_expenses(_trip()) == Money(1_000_000)

    def test_by_category_skips_empty_categories(self) -> None:
        totals = totals_by_category(_trip())
        assert totals == {
            ExpenseCategory.FOOD: Money(100_000),
            ExpenseCategory.ACCOMMODATION: Money(900_000),
        }
        # Declaration order, not insertion order.
        assert list(totals) == [ExpenseCategory.FOOD, ExpenseCategory.ACCOMMODATION]

    def test_percentages(self) -> None:
        assert category_percentages(_trip()) == {
            ExpenseCategory.FOOD: 10,
            ExpenseCategory.ACCOMMODATION: 90,
        }

    def test_percentages_empty_trip(self) -> None:
        trip = Trip.create("x", (ALICE,), date(2025, 1, 1), date(2025, 1, 1))
        assert category_percentages(trip) == {}

    def test_average_per_person(self) -> None:
        assert average_per_person(_trip()) == Money(333_333)


class TestSpendByPerson:
    def test_paid_and_consumed(self) -> None:
        rows = {row.person: row for row in spend_by_person(_trip())}
        assert rows[ALICE].paid == Money(900_000)
        assert rows[ALICE].consumed == Money(320_000)
        assert rows[BOB].consumed == Money(330_000)
        assert rows[CAROL].net == Money(40_000 - 350_000)


class TestSummarize:
    def test_summary_fields(self) -> None:
        summary = summarize(_trip())
        assert summary.total == Money(1_000_000)
        assert summary.expense_count == 3
        assert summary.participant_count == 3
        assert summary.average_per_person == Money(333_333)

    def test_summary_includes_percentages_and_per_person(self) -> None:
        summary = summarize(_trip())
        assert summary.category_percentages == {
            ExpenseCategory.FOOD: 10,
            ExpenseCategory.ACCOMMODATION: 90,
        }
        assert [row.person for row in summary.by_person] == [ALICE, BOB, CAROL]
        assert summary.by_person[0].paid == Money(900_000)
        assert summary.by_person[2].net == Money(40_000 - 350_000)
