"""Offline-first sync: connectivity probing, remote store client, coordinator."""

from tripsplit.sync.connectivity import ConnectivityMonitor
from tripsplit.sync.coordinator import SyncCoordinator, SyncState
from tripsplit.sync.remote import HttpRemoteTripStore, RemoteTripStore

__all__ = [
    "ConnectivityMonitor",
    "HttpRemoteTripStore",
    "RemoteTripStore",
    "SyncCoordinator",
    "SyncState",
]
