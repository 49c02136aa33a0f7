"""Database repository for local snapshot persistence.

Provides async functions that read and write the ``local_snapshots`` table.
The caller manages commit (see :func:`tripsplit.db.session.get_session`).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripsplit.db.models import LocalSnapshot


async def save_snapshot(
    session: AsyncSession,
    key: str,
    payload: str,
) -> LocalSnapshot:
    """Insert or overwrite the snapshot stored under *key*.

    Args:
        session: Active async database session (caller manages commit).
        key: Slot name.
        payload: Serialized document.

    Returns:
        The merged :class:`LocalSnapshot` instance.
    """
    row = LocalSnapshot(
        key=key,
        payload=payload,
        saved_at=datetime.now(timezone.utc),
    )
    merged = await session.merge(row)
    await session.flush()
    return merged


async def load_snapshot(session: AsyncSession, key: str) -> str | None:
    """Return the payload stored under *key*, or ``None`` if the slot is empty."""
    stmt = select(LocalSnapshot.payload).where(LocalSnapshot.key == key)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def delete_snapshot(session: AsyncSession, key: str) -> bool:
    """Remove the snapshot under *key*.  Returns ``True`` if a row was deleted."""
    result = await session.execute(delete(LocalSnapshot).where(LocalSnapshot.key == key))
    return bool(result.rowcount)  # type: ignore[union-attr]
