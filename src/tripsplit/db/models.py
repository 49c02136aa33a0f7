"""SQLAlchemy ORM models for the on-device database.

The device keeps exactly one trip snapshot, stored as a JSON document under
a well-known key.  There is no history and no per-expense table: the
snapshot is the unit of persistence, just as it is the unit of sync.
"""

from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

#: Key of the single active-trip slot.
CURRENT_TRIP_KEY = "currentTrip"


class Base(DeclarativeBase):
    """Shared declarative base for all TripSplit models."""


class LocalSnapshot(Base):
    """A serialized snapshot stored under a fixed key (overwritten on save)."""

    __tablename__ = "local_snapshots"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
