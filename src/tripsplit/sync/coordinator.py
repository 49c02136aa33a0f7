"""Sync state machine: connectivity, push orchestration and join-by-code.

States::

    OFFLINE ──probe ok──▶ ONLINE_IDLE ──mutation──▶ SYNCING
       ▲                      ▲                        │
       └────probe failed──────┴──── last push done ────┘

The state is derived from two facts: the latest probe result and whether a
push or join is still in flight.  Local mutations are already durable when
:meth:`SyncCoordinator.notify_mutation` is called, so a failed push only
sets :attr:`SyncCoordinator.sync_error`; nothing is rolled back or retried.
Pushes are never awaited or cancelled by later mutations, so the last push
to reach the server wins.

All methods must be called from the event loop that owns the session; push
results are applied by tasks on that same loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum

from tripsplit.errors import ConnectivityError, RemoteError, ValidationError
from tripsplit.ledger.models import Trip, normalize_share_code
from tripsplit.sync.connectivity import ConnectivityMonitor
from tripsplit.sync.remote import RemoteTripStore

logger = logging.getLogger(__name__)

OFFLINE_JOIN_MESSAGE = "Internet connection required to join trip"

Listener = Callable[["SyncCoordinator"], None]


class SyncState(StrEnum):
    """States of the sync state machine."""

    OFFLINE = "offline"
    ONLINE_IDLE = "online_idle"
    SYNCING = "syncing"


class SyncCoordinator:
    """Pushes local snapshots and pulls shared trips when online.

    Args:
        remote: The remote trip store.
        monitor: Connectivity prober; a default one is built from settings.
    """

    def __init__(
        self,
        remote: RemoteTripStore,
        monitor: ConnectivityMonitor | None = None,
    ) -> None:
        self._remote = remote
        self._monitor = monitor or ConnectivityMonitor()
        self._online = False
        self._pushes: set[asyncio.Task[None]] = set()
        self._joins = 0
        self._watch_task: asyncio.Task[None] | None = None
        self._listeners: list[Listener] = []

        #: User-visible message of the last sync failure, ``None`` if clear.
        self.sync_error: str | None = None

    # ── Observable state ──────────────────────────────────────────────

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_syncing(self) -> bool:
        return bool(self._pushes) or self._joins > 0

    @property
    def state(self) -> SyncState:
        if not self._online:
            return SyncState.OFFLINE
        if self.is_syncing:
            return SyncState.SYNCING
        return SyncState.ONLINE_IDLE

    def add_listener(self, listener: Listener) -> None:
        """Call *listener* with this coordinator after every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def dismiss_error(self) -> None:
        """Clear the user-visible sync error."""
        if self.sync_error is not None:
            self.sync_error = None
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Sync listener %r failed", listener)

    # ── Connectivity ──────────────────────────────────────────────────

    def set_online(self, online: bool) -> None:
        """Record a probe result."""
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        self._notify()

    async def refresh_connectivity(self) -> bool:
        """Probe once and record the result."""
        online = await self._monitor.check()
        self.set_online(online)
        return online

    async def start(self) -> None:
        """Probe immediately, then keep probing in the background."""
        if self._watch_task is not None:
            return
        await self.refresh_connectivity()
        self._watch_task = asyncio.create_task(self._watch(), name="tripsplit-connectivity")

    async def _watch(self) -> None:
        await asyncio.sleep(self._monitor.interval)
        await self._monitor.watch(self.set_online)

    async def stop(self) -> None:
        """Stop probing and let in-flight pushes finish."""
        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._watch_task
            self._watch_task = None
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until every push started so far has completed."""
        while self._pushes:
            await asyncio.gather(*list(self._pushes), return_exceptions=True)

    # ── Push ──────────────────────────────────────────────────────────

    def notify_mutation(self, trip: Trip) -> asyncio.Task[None] | None:
        """Schedule a push of *trip* if online.

        Called after the local save of every mutation.  Returns the push
        task, or ``None`` when offline (the next mutation made while online
        carries the change).
        """
        if not self._online:
            logger.debug("Offline; trip %s saved locally only", trip.id)
            return None

        task = asyncio.create_task(self._push(trip), name=f"tripsplit-push-{trip.id}")
        self._pushes.add(task)
        task.add_done_callback(self._push_done)
        self.sync_error = None
        self._notify()
        return task

    async def _push(self, trip: Trip) -> None:
        try:
            await self._remote.push(trip)
        except RemoteError as exc:
            logger.warning("Push of trip %s failed: %s", trip.id, exc)
            self.sync_error = str(exc)
        else:
            logger.info("Synced trip %s (%d expenses)", trip.id, len(trip.expenses))
            self.sync_error = None

    def _push_done(self, task: asyncio.Task[None]) -> None:
        self._pushes.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Push task crashed", exc_info=task.exception())
            self.sync_error = f"Sync failed: {task.exception()}"
        self._notify()

    # ── Join ──────────────────────────────────────────────────────────

    async def join_trip_with_code(self, code: str) -> Trip:
        """Fetch the trip shared under *code*.

        The caller replaces its active trip with the result; on any failure
        nothing changes locally.

        Raises:
            ConnectivityError: Immediately, when offline.
            ValidationError: If *code* is not a well-formed share code.
            RemoteNotFound: If no trip uses the code.
            RemoteFailure: On transport errors and timeouts.
        """
        if not self._online:
            self.sync_error = OFFLINE_JOIN_MESSAGE
            self._notify()
            raise ConnectivityError(OFFLINE_JOIN_MESSAGE)

        try:
            normalized = normalize_share_code(code)
        except ValueError as exc:
            self.sync_error = str(exc)
            self._notify()
            raise ValidationError([str(exc)]) from exc

        self._joins += 1
        self._notify()
        try:
            trip = await self._remote.pull(normalized)
        except RemoteError as exc:
            logger.warning("Join with code %s failed: %s", normalized, exc)
            self.sync_error = str(exc)
            raise
        else:
            logger.info("Joined trip %s via code %s", trip.id, normalized)
            self.sync_error = None
        finally:
            self._joins -= 1
            self._notify()

        return trip
