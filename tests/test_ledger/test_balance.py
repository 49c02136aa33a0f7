"""Tests for balance derivation from ledger replay."""

from __future__ import annotations

import random
from datetime import date

from tripsplit.ledger.balance import _expense_effects, compute_balances, rounding_residual
from tripsplit.ledger.models import Expense, Person, Trip
from tripsplit.ledger.money import Money

# ── Helpers ───────────────────────────────────────────────────────────────────

ALICE = Person(name="Alice")
BOB = Person(name="Bob")
CAROL = Person(name="Carol")


def _trip(*expenses: Expense, people: tuple[Person, ...] = (ALICE, BOB, CAROL)) -> Trip:
    trip = Trip.create("Bali", people, date(2025, 8, 1), date(2025, 8, 7))
    for expense in expenses:
        trip = trip.with_expense(expense)
    return trip


def _expense(amount: int, paid_by: Person, *split: Person) -> Expense:
    return Expense(
        title="expense",
        amount=Money(amount),
        paid_by=paid_by,
        split_among=split or (ALICE, BOB, CAROL),
    )


# ── _expense_effects tests ────────────────────────────────────────────────────


class TestExpenseEffects:
    """Tests for the _expense_effects helper."""

    def test_payer_credited_full_amount(self) -> None:
        effects = _expense_effects(_expense(300, ALICE))
        assert effects[0] == (ALICE, Money(300))

    def test_each_member_debited_share(self) -> None:
        effects = _expense_effects(_expense(300, ALICE))
        assert effects[1:] == [(ALICE, Money(-100)), (BOB, Money(-100)), (CAROL, Money(-100))]

    def test_payer_not_in_split(self) -> None:
        effects = _expense_effects(_expense(200, ALICE, BOB))
        assert effects == [(ALICE, Money(200)), (BOB, Money(-200))]


# ── compute_balances tests ────────────────────────────────────────────────────


class TestComputeBalances:
    """Tests for compute_balances."""

    def test_no_expenses_all_zero(self) -> None:
        """Empty ledger → every participant at zero."""
        balances = compute_balances(_trip())
        assert balances == {ALICE: Money(0), BOB: Money(0), CAROL: Money(0)}

    def test_single_expense_split_three_ways(self) -> None:
        """Alice pays 300 for all three → +200 / -100 / -100."""
        balances = compute_balances(_trip(_expense(300, ALICE)))
        assert balances == {ALICE: Money(200), BOB: Money(-100), CAROL: Money(-100)}

    def test_two_payers(self) -> None:
        """Alice and Bob each pay 300 for all → +100 / +100 / -200."""
        balances = compute_balances(_trip(_expense(300, ALICE), _expense(300, BOB)))
        assert balances == {ALICE: Money(100), BOB: Money(100), CAROL: Money(-200)}

    def test_keeps_participant_order(self) -> None:
        balances = compute_balances(_trip(_expense(300, CAROL)))
        assert list(balances) == [ALICE, BOB, CAROL]

    def test_order_of_expenses_irrelevant(self) -> None:
        expenses = [_expense(300, ALICE), _expense(1000, BOB, ALICE, BOB), _expense(77, CAROL)]
        forward = compute_balances(_trip(*expenses))
        backward = compute_balances(_trip(*reversed(expenses)))
        assert forward == backward

    def test_floor_remainder_stays_with_payer(self) -> None:
        """100 split 3 ways: everyone is charged 33, Alice is credited 100."""
        balances = compute_balances(_trip(_expense(100, ALICE)))
        assert balances == {ALICE: Money(67), BOB: Money(-33), CAROL: Money(-33)}
        assert sum(balances.values()) == Money(1)

    def test_unlisted_person_appended(self) -> None:
        """A person referenced only by an expense still gets a balance."""
        dave = Person(name="Dave")
        expense = _expense(100, ALICE, ALICE, BOB)
        trip = _trip(expense).model_copy(
            update={"expenses": (_expense(100, dave, dave, ALICE),)},
        )
        balances = compute_balances(trip)
        assert list(balances) == [ALICE, BOB, CAROL, dave]
        assert balances[dave] == Money(50)

    def test_identity_by_id_not_name(self) -> None:
        """Two participants sharing a name keep separate balances."""
        alex1, alex2 = Person(name="Alex"), Person(name="Alex")
        trip = _trip(_expense(200, alex1, alex1, alex2), people=(alex1, alex2))
        balances = compute_balances(trip)
        assert balances[alex1] == Money(100)
        assert balances[alex2] == Money(-100)


# ── Residual invariant ────────────────────────────────────────────────────────


class TestRoundingResidual:
    """The sum of balances equals the undistributed remainder."""

    def test_exact_splits_have_no_residual(self) -> None:
        assert rounding_residual(_trip(_expense(300, ALICE))) == Money(0)

    def test_residual_matches_balance_sum_and_bound(self) -> None:
        rng = random.Random(1234)
        people = (ALICE, BOB, CAROL)
        for _ in range(200):
            expenses = []
            for _ in range(rng.randint(0, 6)):
                split = rng.sample(people, rng.randint(1, 3))
                expenses.append(_expense(rng.randint(1, 500_000), rng.choice(people), *split))
            trip = _trip(*expenses)
            total = sum(compute_balances(trip).values(), Money(0))
            assert total == rounding_residual(trip)
            bound = sum(len(e.split_among) - 1 for e in trip.expenses)
            assert 0 <= total.units <= bound
