"""Exception hierarchy for TripSplit.

Balance and settlement computations never raise.  Everything else that can
fail raises a subclass of :class:`TripSplitError`:

- :class:`ValidationError` — incomplete or inconsistent trip/expense input,
  detected before anything is constructed or persisted.
- :class:`ConnectivityError` — the operation needs the network and the
  device is offline.
- :class:`RemoteNotFound` / :class:`RemoteFailure` — the remote trip store
  could not resolve a share code, or the request failed.
- :class:`PersistenceReadError` — the local snapshot is unreadable.  The
  local store converts it into "no saved trip"; it never reaches the user.
"""

from __future__ import annotations


class TripSplitError(Exception):
    """Base class for all TripSplit errors."""


class ValidationError(TripSplitError):
    """Form input that cannot become a Trip or Expense.

    Attributes:
        errors: Human-readable problems, one per entry.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(" ".join(self.errors) or "Invalid input.")


class ConnectivityError(TripSplitError):
    """An online-only operation was attempted while offline."""


class RemoteError(TripSplitError):
    """Base class for remote trip store failures."""


class RemoteNotFound(RemoteError):
    """No remote trip is stored under the requested share code."""

    def __init__(self, share_code: str) -> None:
        self.share_code = share_code
        super().__init__(f"Trip not found with code: {share_code}")


class RemoteFailure(RemoteError):
    """Transport error, timeout, or server-side failure."""


class PersistenceReadError(TripSplitError):
    """The local snapshot exists but cannot be decoded."""
