"""Client for the remote trip store.

Defines a protocol-based interface for the two remote operations with one
concrete implementation:

- :class:`RemoteTripStore` — ``push(trip)`` / ``pull(share_code)``
- :class:`HttpRemoteTripStore` — JSON over HTTP(S) via aiohttp

Wire format::

    PUT {base}/api/trips/{trip_id}          body: Trip JSON
    GET {base}/api/trips/by-code/{CODE}     → Trip JSON | 404

A push is an idempotent overwrite keyed by trip id; whichever push reaches
the server last wins.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

import aiohttp
from pydantic import ValidationError as ModelValidationError

from tripsplit.config import settings
from tripsplit.errors import RemoteFailure, RemoteNotFound
from tripsplit.ledger.models import Trip, normalize_share_code

logger = logging.getLogger(__name__)


# ── Protocol ──────────────────────────────────────────────────────────────────


@runtime_checkable
class RemoteTripStore(Protocol):
    """Abstract interface for the remote key-value trip store."""

    async def push(self, trip: Trip) -> None:
        """Upload the full snapshot of *trip*.

        Raises:
            RemoteFailure: On any transport or server error.
        """
        ...

    async def pull(self, share_code: str) -> Trip:
        """Download the trip published under *share_code*.

        Raises:
            RemoteNotFound: If no trip uses that code.
            RemoteFailure: On any other transport or server error.
        """
        ...


# ── HTTP implementation ───────────────────────────────────────────────────────


class HttpRemoteTripStore:
    """Remote trip store reached over HTTP with aiohttp.

    Uses ``settings.remote_base_url`` and ``settings.remote_timeout_seconds``
    unless overridden.  A caller-supplied ``session`` is used as-is and left
    open by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._base_url = (base_url or settings.remote_base_url).rstrip("/")
        self._timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else settings.remote_timeout_seconds,
        )
        self._session = session
        self._owns_session = session is None

    def _client(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HttpRemoteTripStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def push(self, trip: Trip) -> None:
        url = f"{self._base_url}/api/trips/{trip.id}"
        try:
            async with self._client().put(
                url,
                data=trip.to_json(),
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            ) as resp:
                if resp.status not in (200, 201):
                    detail = await _error_detail(resp)
                    raise RemoteFailure(f"Sync failed (HTTP {resp.status}): {detail}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise RemoteFailure(f"Sync failed: {str(exc) or type(exc).__name__}") from exc

        logger.debug("Pushed trip %s (%d expenses)", trip.id, len(trip.expenses))

    async def pull(self, share_code: str) -> Trip:
        code = normalize_share_code(share_code)
        url = f"{self._base_url}/api/trips/by-code/{code}"
        try:
            async with self._client().get(url, timeout=self._timeout) as resp:
                if resp.status == 404:
                    raise RemoteNotFound(code)
                if resp.status != 200:
                    detail = await _error_detail(resp)
                    raise RemoteFailure(f"Could not fetch trip (HTTP {resp.status}): {detail}")
                body = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise RemoteFailure(f"Could not fetch trip: {str(exc) or type(exc).__name__}") from exc

        try:
            trip = Trip.from_json(body.decode("utf-8"))
        except (UnicodeDecodeError, ModelValidationError) as exc:
            raise RemoteFailure(f"Remote trip {code} is malformed.") from exc

        logger.debug("Pulled trip %s for code %s", trip.id, code)
        return trip


async def _error_detail(resp: aiohttp.ClientResponse) -> str:
    """Best-effort error text from a JSON ``{"error": ...}`` or plain body."""
    try:
        payload = await resp.json(content_type=None)
    except (aiohttp.ContentTypeError, ValueError):
        return (await resp.text(errors="replace"))[:200] or resp.reason or "unknown error"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return resp.reason or "unknown error"
