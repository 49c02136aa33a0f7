"""The active-trip session.

:class:`TripSession` is the single owner of the device's active trip.  Every
user action goes through it in the same order:

1. validate the form input (:mod:`tripsplit.ledger.validation`),
2. build the next immutable :class:`Trip` snapshot,
3. await :meth:`LocalStore.save`; the action is complete once this returns,
4. hand the snapshot to :meth:`SyncCoordinator.notify_mutation`, which
   pushes it in the background if online.

Balances, settlements and summaries are recomputed from the current
snapshot on every call.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime

from tripsplit.errors import ValidationError
from tripsplit.ledger.balance import compute_balances
from tripsplit.ledger.models import Expense, ExpenseCategory, Person, Settlement, Trip, utcnow
from tripsplit.ledger.money import Money
from tripsplit.ledger.settlement import reduce_balances
from tripsplit.ledger.summary import TripSummary, summarize
from tripsplit.ledger.validation import clean_names, validate_new_expense, validate_new_trip
from tripsplit.receipts import ReceiptHints, TextExtractor, parse_receipt_text, scan_receipt
from tripsplit.storage import LocalStore
from tripsplit.sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)

NO_TRIP_MESSAGE = "Create or join a trip first."


class TripSession:
    """Owner of the active trip, its local persistence and its sync.

    Args:
        store: Local single-slot storage.
        sync: Coordinator used to push snapshots and join shared trips.
    """

    def __init__(self, store: LocalStore, sync: SyncCoordinator) -> None:
        self._store = store
        self._sync = sync
        self._trip: Trip | None = None

    @property
    def trip(self) -> Trip | None:
        """The current snapshot, or ``None`` before a trip exists."""
        return self._trip

    @property
    def sync(self) -> SyncCoordinator:
        return self._sync

    async def open(self) -> Trip | None:
        """Load the last saved trip, if any."""
        self._trip = await self._store.load()
        if self._trip is not None:
            logger.info("Restored trip %s (%s)", self._trip.id, self._trip.name)
        return self._trip

    def _require_trip(self) -> Trip:
        if self._trip is None:
            raise ValidationError([NO_TRIP_MESSAGE])
        return self._trip

    async def _commit(self, trip: Trip) -> None:
        await self._store.save(trip)
        self._trip = trip
        self._sync.notify_mutation(trip)

    # ── Mutations ─────────────────────────────────────────────────────

    async def create_trip(
        self,
        name: str,
        participant_names: list[str],
        start_date: date,
        end_date: date,
    ) -> Trip:
        """Start a new trip, replacing the active one.

        Raises:
            ValidationError: If the form is incomplete.
        """
        errors = validate_new_trip(name, participant_names, start_date, end_date)
        if errors:
            raise ValidationError(errors)

        participants = [Person(name=n) for n in clean_names(participant_names)]
        trip = Trip.create(name.strip(), participants, start_date, end_date)
        await self._commit(trip)
        logger.info("Created trip %s with %d participants", trip.id, len(participants))
        return trip

    async def add_expense(
        self,
        *,
        title: str,
        amount: Money | int | str,
        paid_by_id: uuid.UUID,
        split_among_ids: list[uuid.UUID],
        category: ExpenseCategory = ExpenseCategory.OTHER,
        expense_date: datetime | None = None,
        notes: str | None = None,
        receipt_image: bytes | None = None,
    ) -> Expense:
        """Record a new expense on the active trip.

        Raises:
            ValidationError: If there is no active trip or the form is
                incomplete.
        """
        trip = self._require_trip()
        errors = validate_new_expense(
            trip,
            title=title,
            amount=amount,
            paid_by_id=paid_by_id,
            split_among_ids=split_among_ids,
        )
        if errors:
            raise ValidationError(errors)

        payer = trip.participant(paid_by_id)
        # Keep split members in participant order, whatever order they were picked in.
        selected = set(split_among_ids)
        expense = Expense(
            title=title.strip(),
            amount=Money.coerce(amount),
            paid_by=payer,
            split_among=tuple(p for p in trip.participants if p.id in selected),
            date=expense_date or utcnow(),
            category=category,
            receipt_image=receipt_image,
            notes=notes or None,
        )
        await self._commit(trip.with_expense(expense))
        return expense

    async def delete_expense(self, expense_id: uuid.UUID) -> bool:
        """Remove an expense.  Returns ``False`` if it was not recorded."""
        trip = self._require_trip()
        try:
            updated = trip.without_expense(expense_id)
        except KeyError:
            logger.warning("Expense %s not found on trip %s", expense_id, trip.id)
            return False
        await self._commit(updated)
        return True

    async def join_trip_with_code(self, code: str) -> Trip:
        """Replace the active trip with the one shared under *code*.

        This is a full replacement, not a merge.  On failure the current
        trip is left untouched and the error is re-raised.
        """
        trip = await self._sync.join_trip_with_code(code)
        await self._store.save(trip)
        self._trip = trip
        return trip

    # ── Views ─────────────────────────────────────────────────────────

    def balances(self) -> dict[Person, Money]:
        if self._trip is None:
            return {}
        return compute_balances(self._trip)

    def settlements(self, threshold: int | Money | None = None) -> list[Settlement]:
        return reduce_balances(self.balances(), threshold)

    def summary(self) -> TripSummary | None:
        if self._trip is None:
            return None
        return summarize(self._trip)

    # ── Receipts ──────────────────────────────────────────────────────

    def receipt_hints(self, recognized_text: str) -> ReceiptHints:
        """Suggestions for the add-expense form.  Nothing is recorded."""
        return parse_receipt_text(recognized_text)

    async def scan_receipt(self, image: bytes, extractor: TextExtractor) -> ReceiptHints:
        return await scan_receipt(image, extractor)
