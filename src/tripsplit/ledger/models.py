"""Pydantic models for the trip ledger.

All entities are frozen: a "mutation" builds a new :class:`Trip` snapshot
(see :meth:`Trip.with_expense` / :meth:`Trip.without_expense`) that the
session then persists and syncs as a whole.

Field names are the stable on-disk/on-wire schema.  Unknown fields are
ignored on decode so that older clients can read newer snapshots.
"""

from __future__ import annotations

import re
import secrets
import uuid
from datetime import date, datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tripsplit.errors import ValidationError
from tripsplit.ledger.money import Money

SHARE_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
SHARE_CODE_LENGTH = 6
_SHARE_CODE_RE = re.compile(rf"^[A-Z0-9]{{{SHARE_CODE_LENGTH}}}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_share_code() -> str:
    """Return a random 6-character code from ``[A-Z0-9]``.

    Uniqueness is not checked anywhere; a collision surfaces later as a
    remote push failure.
    """
    return "".join(secrets.choice(SHARE_CODE_ALPHABET) for _ in range(SHARE_CODE_LENGTH))


def normalize_share_code(code: str) -> str:
    """Upper-case and validate a share code typed by a user.

    Raises:
        ValueError: If the code is not 6 characters from ``[A-Z0-9]``.
    """
    normalized = code.strip().upper()
    if not _SHARE_CODE_RE.match(normalized):
        raise ValueError(
            f"Share code must be {SHARE_CODE_LENGTH} letters or digits, got {code!r}."
        )
    return normalized


_FROZEN = ConfigDict(
    frozen=True,
    extra="ignore",
    ser_json_bytes="base64",
    val_json_bytes="base64",
)


# ── Categories ────────────────────────────────────────────────────────────────


class ExpenseCategory(StrEnum):
    """Fixed set of expense categories."""

    FOOD = "Food"
    ACCOMMODATION = "Accommodation"
    TRANSPORT = "Transport"
    ACTIVITIES = "Activities"
    OTHER = "Other"


# ── Person ────────────────────────────────────────────────────────────────────


class Person(BaseModel):
    """A trip participant.

    Identity is the ``id`` alone: two people called "Alex" are different
    participants, and equality/hashing ignore the name.
    """

    model_config = _FROZEN

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Person):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)


# ── Expense ───────────────────────────────────────────────────────────────────


class Expense(BaseModel):
    """One payment event, split evenly among ``split_among``."""

    model_config = _FROZEN

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    title: str
    amount: Money
    paid_by: Person
    split_among: tuple[Person, ...]
    date: datetime = Field(default_factory=utcnow)
    category: ExpenseCategory = ExpenseCategory.OTHER
    receipt_image: bytes | None = None
    notes: str | None = None

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: Money) -> Money:
        if v <= 0:
            raise ValueError("Expense amount must be greater than zero.")
        return v

    @field_validator("split_among")
    @classmethod
    def split_among_unique(cls, v: tuple[Person, ...]) -> tuple[Person, ...]:
        if not v:
            raise ValueError("An expense must be split among at least one person.")
        if len({p.id for p in v}) != len(v):
            raise ValueError("split_among lists the same person twice.")
        return v

    def share(self) -> Money:
        """Per-person share, rounded down."""
        share, _ = self.amount.split(len(self.split_among))
        return share

    def remainder(self) -> Money:
        """Units left over after every member pays :meth:`share`."""
        _, remainder = self.amount.split(len(self.split_among))
        return remainder


# ── Trip ──────────────────────────────────────────────────────────────────────


class Trip(BaseModel):
    """The top-level ledger record: participants, expenses and metadata."""

    model_config = _FROZEN

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    participants: tuple[Person, ...] = ()
    expenses: tuple[Expense, ...] = ()
    start_date: date
    end_date: date
    share_code: str = Field(default_factory=generate_share_code)
    last_updated: datetime = Field(default_factory=utcnow)

    @field_validator("share_code")
    @classmethod
    def share_code_format(cls, v: str) -> str:
        return normalize_share_code(v)

    @field_validator("participants")
    @classmethod
    def participants_unique(cls, v: tuple[Person, ...]) -> tuple[Person, ...]:
        if len({p.id for p in v}) != len(v):
            raise ValueError("participants lists the same person twice.")
        return v

    @model_validator(mode="after")
    def dates_ordered(self) -> Trip:
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date.")
        return self

    @classmethod
    def create(
        cls,
        name: str,
        participants: list[Person] | tuple[Person, ...],
        start_date: date,
        end_date: date,
        *,
        share_code: str | None = None,
    ) -> Trip:
        """Start a new trip with no expenses and a fresh share code."""
        return cls(
            name=name,
            participants=tuple(participants),
            start_date=start_date,
            end_date=end_date,
            share_code=share_code or generate_share_code(),
        )

    def participant(self, person_id: uuid.UUID) -> Person | None:
        """Look up a participant by id."""
        for person in self.participants:
            if person.id == person_id:
                return person
        return None

    def expense(self, expense_id: uuid.UUID) -> Expense | None:
        """Look up an expense by id."""
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    def with_expense(self, expense: Expense) -> Trip:
        """Return a snapshot with *expense* appended to the ledger.

        Raises:
            ValidationError: If the payer or a split member is not a
                participant of this trip.
        """
        member_ids = {p.id for p in self.participants}
        errors: list[str] = []
        if expense.paid_by.id not in member_ids:
            errors.append(f"Payer {expense.paid_by.name!r} is not a participant of this trip.")
        for person in expense.split_among:
            if person.id not in member_ids:
                errors.append(f"{person.name!r} is not a participant of this trip.")
        if self.expense(expense.id) is not None:
            errors.append("This expense is already recorded.")
        if errors:
            raise ValidationError(errors)

        return self.model_copy(
            update={"expenses": (*self.expenses, expense), "last_updated": utcnow()},
        )

    def without_expense(self, expense_id: uuid.UUID) -> Trip:
        """Return a snapshot with the expense *expense_id* removed.

        Raises:
            KeyError: If no expense with that id is recorded.
        """
        if self.expense(expense_id) is None:
            raise KeyError(expense_id)
        remaining = tuple(e for e in self.expenses if e.id != expense_id)
        return self.model_copy(update={"expenses": remaining, "last_updated": utcnow()})

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, payload: str | bytes) -> Trip:
        return cls.model_validate_json(payload)


# ── Settlement ────────────────────────────────────────────────────────────────


class Settlement(BaseModel):
    """A recommended transfer: ``from_person`` pays ``to_person``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_person: Person = Field(alias="from")
    to_person: Person = Field(alias="to")
    amount: Money

    def describe(self) -> str:
        return f"{self.from_person.name} pays {self.to_person.name} {self.amount.format()}"
