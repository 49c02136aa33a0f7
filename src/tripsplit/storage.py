"""Durable single-slot storage of the active trip.

:class:`LocalStore` persists one :class:`~tripsplit.ledger.models.Trip`
snapshot.  ``save`` commits before it returns, so a mutation is durable as
soon as the awaiting caller resumes.  ``load`` never raises for bad data: an
unreadable record is logged and reported as "no saved trip".
"""

from __future__ import annotations

import logging

from pydantic import ValidationError as ModelValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from tripsplit.db.models import CURRENT_TRIP_KEY
from tripsplit.db.repository import delete_snapshot, load_snapshot, save_snapshot
from tripsplit.db.session import get_session, init_db, make_session_factory
from tripsplit.errors import PersistenceReadError
from tripsplit.ledger.models import Trip

logger = logging.getLogger(__name__)


class LocalStore:
    """Single-slot persistence of the active trip snapshot.

    Args:
        engine: Engine to store into; defaults to the module-level engine
            bound to ``settings.database_url``.
        key: Slot name (``"currentTrip"``).
    """

    def __init__(
        self,
        engine: AsyncEngine | None = None,
        key: str = CURRENT_TRIP_KEY,
    ) -> None:
        self._engine = engine
        self._factory = make_session_factory(engine) if engine is not None else None
        self._key = key
        self._ready = False

    async def _ensure_schema(self) -> None:
        if self._ready:
            return
        await init_db(self._engine)
        self._ready = True

    async def save(self, trip: Trip) -> None:
        """Overwrite the slot with *trip* and commit."""
        await self._ensure_schema()
        async with get_session(self._factory) as session:
            await save_snapshot(session, self._key, trip.to_json())
        logger.debug("Saved trip %s locally (%d expenses)", trip.id, len(trip.expenses))

    async def load(self) -> Trip | None:
        """Return the saved trip, or ``None`` if absent or unreadable."""
        try:
            return await self.read()
        except PersistenceReadError as exc:
            logger.warning("Ignoring unreadable local trip snapshot: %s", exc)
            return None

    async def read(self) -> Trip | None:
        """Like :meth:`load`, but raise for unreadable data.

        Raises:
            PersistenceReadError: If the stored record cannot be decoded or
                the database cannot be read.
        """
        try:
            await self._ensure_schema()
            async with get_session(self._factory) as session:
                payload = await load_snapshot(session, self._key)
        except SQLAlchemyError as exc:
            raise PersistenceReadError(f"local database unreadable: {exc}") from exc

        if payload is None:
            return None
        try:
            return Trip.from_json(payload)
        except ModelValidationError as exc:
            raise PersistenceReadError(
                f"snapshot {self._key!r} failed to decode ({exc.error_count()} errors)"
            ) from exc

    async def clear(self) -> None:
        """Delete the saved trip, if any."""
        await self._ensure_schema()
        async with get_session(self._factory) as session:
            await delete_snapshot(session, self._key)
