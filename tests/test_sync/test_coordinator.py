"""Tests for the sync state machine."""

from __future__ import annotations

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from tripsplit.errors import ConnectivityError, RemoteFailure, RemoteNotFound, ValidationError
from tripsplit.ledger.models import Person, Trip
from tripsplit.sync.coordinator import OFFLINE_JOIN_MESSAGE, SyncCoordinator, SyncState

# ── Helpers ───────────────────────────────────────────────────────────────────


def _trip() -> Trip:
    people = (Person(name="Alice"), Person(name="Bob"))
    return Trip.create("Bali", people, date(2025, 8, 1), date(2025, 8, 7), share_code="ABC123")


def _monitor(online: bool = True) -> MagicMock:
    monitor = MagicMock()
    monitor.check = AsyncMock(return_value=online)
    monitor.watch = AsyncMock()
    monitor.interval = 60
    return monitor


def _coordinator(online: bool = True, remote: AsyncMock | None = None) -> SyncCoordinator:
    coordinator = SyncCoordinator(remote or AsyncMock(), _monitor(online))
    coordinator.set_online(online)
    return coordinator


# ── State ─────────────────────────────────────────────────────────────────────


class TestState:
    def test_starts_offline(self) -> None:
        assert SyncCoordinator(AsyncMock(), _monitor()).state == SyncState.OFFLINE

    def test_online_idle(self) -> None:
        assert _coordinator().state == SyncState.ONLINE_IDLE

    @pytest.mark.asyncio
    async def test_refresh_connectivity_records_probe(self) -> None:
        coordinator = SyncCoordinator(AsyncMock(), _monitor(online=True))
        assert await coordinator.refresh_connectivity() is True
        assert coordinator.is_online

    @pytest.mark.asyncio
    async def test_start_probes_then_stop(self) -> None:
        monitor = _monitor(online=True)
        coordinator = SyncCoordinator(AsyncMock(), monitor)
        await coordinator.start()
        assert coordinator.state == SyncState.ONLINE_IDLE
        monitor.check.assert_called_once()
        await coordinator.stop()

    def test_listeners_called_on_change(self) -> None:
        coordinator = _coordinator(online=False)
        seen: list[SyncState] = []
        coordinator.add_listener(lambda c: seen.append(c.state))
        coordinator.set_online(True)
        coordinator.set_online(True)  # unchanged, no notification
        coordinator.set_online(False)
        assert seen == [SyncState.ONLINE_IDLE, SyncState.OFFLINE]

    def test_failing_listener_does_not_break_others(self) -> None:
        coordinator = _coordinator(online=False)
        seen: list[bool] = []
        coordinator.add_listener(MagicMock(side_effect=RuntimeError("boom")))
        coordinator.add_listener(lambda c: seen.append(c.is_online))
        coordinator.set_online(True)
        assert seen == [True]

    def test_remove_listener(self) -> None:
        coordinator = _coordinator(online=False)
        listener = MagicMock()
        coordinator.add_listener(listener)
        coordinator.remove_listener(listener)
        coordinator.set_online(True)
        listener.assert_not_called()


# ── Push ──────────────────────────────────────────────────────────────────────


class TestPush:
    def test_offline_mutation_is_not_pushed(self) -> None:
        remote = AsyncMock()
        coordinator = _coordinator(online=False, remote=remote)
        assert coordinator.notify_mutation(_trip()) is None
        remote.push.assert_not_called()
        assert coordinator.state == SyncState.OFFLINE

    @pytest.mark.asyncio
    async def test_online_mutation_pushes(self) -> None:
        remote = AsyncMock()
        coordinator = _coordinator(remote=remote)
        trip = _trip()

        task = coordinator.notify_mutation(trip)
        assert coordinator.state == SyncState.SYNCING
        await task
        await coordinator.wait_idle()

        remote.push.assert_awaited_once_with(trip)
        assert coordinator.state == SyncState.ONLINE_IDLE
        assert coordinator.sync_error is None

    @pytest.mark.asyncio
    async def test_failed_push_sets_error(self) -> None:
        remote = AsyncMock()
        remote.push.side_effect = RemoteFailure("Sync failed (HTTP 500): down")
        coordinator = _coordinator(remote=remote)

        coordinator.notify_mutation(_trip())
        await coordinator.wait_idle()

        assert coordinator.sync_error == "Sync failed (HTTP 500): down"
        assert coordinator.state == SyncState.ONLINE_IDLE

    @pytest.mark.asyncio
    async def test_next_mutation_clears_error(self) -> None:
        remote = AsyncMock()
        remote.push.side_effect = [RemoteFailure("down"), None]
        coordinator = _coordinator(remote=remote)

        coordinator.notify_mutation(_trip())
        await coordinator.wait_idle()
        assert coordinator.sync_error == "down"

        coordinator.notify_mutation(_trip())
        await coordinator.wait_idle()
        assert coordinator.sync_error is None

    @pytest.mark.asyncio
    async def test_overlapping_pushes_all_run(self) -> None:
        release = asyncio.Event()
        calls: list[Trip] = []

        async def slow_push(trip: Trip) -> None:
            calls.append(trip)
            await release.wait()

        remote = AsyncMock()
        remote.push.side_effect = slow_push
        coordinator = _coordinator(remote=remote)

        first, second = _trip(), _trip()
        coordinator.notify_mutation(first)
        coordinator.notify_mutation(second)
        await asyncio.sleep(0)
        assert coordinator.is_syncing

        release.set()
        await coordinator.wait_idle()
        assert calls == [first, second]
        assert not coordinator.is_syncing

    def test_dismiss_error(self) -> None:
        coordinator = _coordinator()
        listener = MagicMock()
        coordinator.add_listener(listener)
        coordinator.sync_error = "down"
        coordinator.dismiss_error()
        assert coordinator.sync_error is None
        listener.assert_called_once_with(coordinator)


# ── Join ──────────────────────────────────────────────────────────────────────


class TestJoin:
    @pytest.mark.asyncio
    async def test_offline_join_fails_fast(self) -> None:
        remote = AsyncMock()
        coordinator = _coordinator(online=False, remote=remote)

        with pytest.raises(ConnectivityError):
            await coordinator.join_trip_with_code("ABC123")

        remote.pull.assert_not_called()
        assert coordinator.sync_error == OFFLINE_JOIN_MESSAGE

    @pytest.mark.asyncio
    async def test_malformed_code(self) -> None:
        remote = AsyncMock()
        coordinator = _coordinator(remote=remote)
        with pytest.raises(ValidationError):
            await coordinator.join_trip_with_code("AB")
        remote.pull.assert_not_called()

    @pytest.mark.asyncio
    async def test_join_returns_remote_trip(self) -> None:
        trip = _trip()
        remote = AsyncMock()
        remote.pull.return_value = trip
        coordinator = _coordinator(remote=remote)
        coordinator.sync_error = "old error"

        assert await coordinator.join_trip_with_code(" abc123") is trip
        remote.pull.assert_awaited_once_with("ABC123")
        assert coordinator.sync_error is None
        assert coordinator.state == SyncState.ONLINE_IDLE

    @pytest.mark.asyncio
    async def test_join_syncing_while_in_flight(self) -> None:
        states: list[SyncState] = []
        remote = AsyncMock()
        remote.pull.return_value = _trip()
        coordinator = _coordinator(remote=remote)
        coordinator.add_listener(lambda c: states.append(c.state))

        await coordinator.join_trip_with_code("ABC123")
        assert states == [SyncState.SYNCING, SyncState.ONLINE_IDLE]

    @pytest.mark.asyncio
    async def test_unknown_code(self) -> None:
        remote = AsyncMock()
        remote.pull.side_effect = RemoteNotFound("ZZZ999")
        coordinator = _coordinator(remote=remote)

        with pytest.raises(RemoteNotFound):
            await coordinator.join_trip_with_code("ZZZ999")

        assert coordinator.sync_error == "Trip not found with code: ZZZ999"
        assert coordinator.state == SyncState.ONLINE_IDLE
