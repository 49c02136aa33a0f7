"""Form validation rules for trip and expense creation.

Provides :func:`validate_new_trip` and :func:`validate_new_expense`, which
check user input *before* any model is constructed.

Validation errors are returned as a list of human-readable strings.
An empty list means the input is valid.
"""

from __future__ import annotations

import uuid
from datetime import date

from tripsplit.ledger.models import Trip
from tripsplit.ledger.money import Money

MIN_PARTICIPANTS = 2


def clean_names(names: list[str]) -> list[str]:
    """Drop blank entries and surrounding whitespace from participant names."""
    return [n.strip() for n in names if n and n.strip()]


def validate_new_trip(
    name: str,
    participant_names: list[str],
    start_date: date,
    end_date: date,
) -> list[str]:
    """Validate the trip-creation form.

    Args:
        name: Trip name (must not be blank).
        participant_names: Raw participant names; blank entries are ignored.
        start_date: First day of the trip.
        end_date: Last day of the trip (not before *start_date*).

    Returns:
        A list of validation error strings.  Empty means valid.
    """
    errors: list[str] = []

    if not name or not name.strip():
        errors.append("Trip name is required.")

    if len(clean_names(participant_names)) < MIN_PARTICIPANTS:
        errors.append(f"A trip needs at least {MIN_PARTICIPANTS} participants.")

    if start_date > end_date:
        errors.append("Start date must not be after end date.")

    return errors


def validate_new_expense(
    trip: Trip,
    *,
    title: str,
    amount: Money | int | str | None,
    paid_by_id: uuid.UUID | None,
    split_among_ids: list[uuid.UUID],
) -> list[str]:
    """Validate the add-expense form against the trip it will join.

    Args:
        trip: The active trip.
        title: Expense title (must not be blank).
        amount: Raw amount input; must be a positive whole number.
        paid_by_id: Id of the paying participant.
        split_among_ids: Ids of the participants sharing the cost.

    Returns:
        A list of validation error strings.  Empty means valid.
    """
    errors: list[str] = []

    if not title or not title.strip():
        errors.append("Expense title is required.")

    if amount is None or amount == "":
        errors.append("Expense amount is required.")
    else:
        try:
            parsed = Money.coerce(amount)
        except ValueError:
            errors.append(f"Expense amount {amount!r} is not a whole number.")
        else:
            if parsed <= 0:
                errors.append("Expense amount must be greater than zero.")

    if paid_by_id is None:
        errors.append("Select who paid.")
    elif trip.participant(paid_by_id) is None:
        errors.append("The payer is not a participant of this trip.")

    if not split_among_ids:
        errors.append("Select at least one person to split with.")
    else:
        unknown = [pid for pid in split_among_ids if trip.participant(pid) is None]
        if unknown:
            errors.append(f"{len(unknown)} selected person(s) are not participants of this trip.")
        if len(set(split_among_ids)) != len(split_among_ids):
            errors.append("The same person is selected twice.")

    return errors
