"""Reference remote trip store served with aiohttp.

Production deployments point ``REMOTE_BASE_URL`` at a hosted document
store; this server implements the same two endpoints in memory so the
sync path can run end-to-end during development and in tests::

    PUT /api/trips/{trip_id}         store/overwrite a Trip snapshot
    GET /api/trips/by-code/{code}    fetch a snapshot by share code
    GET /api/health                  liveness (usable as a probe URL)

Snapshots are stored exactly as received (fields this version does not
know are kept) and keyed by trip id.  A share code already used by a different
trip id is refused with 409.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from aiohttp import web
from pydantic import ValidationError as ModelValidationError

from tripsplit.config import settings
from tripsplit.ledger.models import Trip, normalize_share_code

logger = logging.getLogger(__name__)


class ShareCodeConflict(Exception):
    """The share code is already published by another trip."""


class TripDocumentStore:
    """In-memory snapshot store with a share-code index."""

    def __init__(self) -> None:
        self._documents: dict[uuid.UUID, str] = {}
        self._codes: dict[str, uuid.UUID] = {}

    def put(self, trip: Trip, payload: str) -> bool:
        """Store *payload* for *trip*.  Returns ``True`` if newly created.

        Raises:
            ShareCodeConflict: If the code belongs to a different trip.
        """
        owner = self._codes.get(trip.share_code)
        if owner is not None and owner != trip.id:
            raise ShareCodeConflict(trip.share_code)

        created = trip.id not in self._documents
        self._documents[trip.id] = payload
        self._codes[trip.share_code] = trip.id
        return created

    def get_by_code(self, code: str) -> str | None:
        trip_id = self._codes.get(code)
        if trip_id is None:
            return None
        return self._documents.get(trip_id)

    def __len__(self) -> int:
        return len(self._documents)


DOCUMENTS = web.AppKey("documents", TripDocumentStore)


async def handle_put_trip(request: web.Request) -> web.Response:
    """PUT /api/trips/{trip_id} — store the full snapshot."""
    try:
        trip_id = uuid.UUID(request.match_info["trip_id"])
    except ValueError:
        return web.json_response({"ok": False, "error": "Invalid trip id"}, status=400)

    try:
        payload = (await request.read()).decode("utf-8")
        trip = Trip.from_json(payload)
    except (UnicodeDecodeError, ModelValidationError) as exc:
        logger.warning("Rejected malformed trip %s: %s", trip_id, type(exc).__name__)
        return web.json_response({"ok": False, "error": "Malformed trip"}, status=400)

    if trip.id != trip_id:
        return web.json_response({"ok": False, "error": "Trip id mismatch"}, status=400)

    try:
        created = request.app[DOCUMENTS].put(trip, payload)
    except ShareCodeConflict:
        logger.warning("Share code %s already used by another trip", trip.share_code)
        return web.json_response(
            {"ok": False, "error": f"Share code {trip.share_code} is already in use"},
            status=409,
        )

    logger.info("Stored trip %s (%d expenses)", trip.id, len(trip.expenses))
    return web.json_response({"ok": True}, status=201 if created else 200)


async def handle_get_by_code(request: web.Request) -> web.Response:
    """GET /api/trips/by-code/{code} — fetch a snapshot."""
    try:
        code = normalize_share_code(request.match_info["code"])
    except ValueError as exc:
        return web.json_response({"ok": False, "error": str(exc)}, status=400)

    payload = request.app[DOCUMENTS].get_by_code(code)
    if payload is None:
        return web.json_response(
            {"ok": False, "error": f"Trip not found with code: {code}"},
            status=404,
        )
    return web.Response(text=payload, content_type="application/json")


async def handle_health(request: web.Request) -> web.Response:
    """GET /api/health — liveness."""
    return web.json_response({"ok": True, "trips": len(request.app[DOCUMENTS])})


def create_remote_app(documents: TripDocumentStore | None = None) -> web.Application:
    """Build the aiohttp application for the remote trip store."""
    app = web.Application()
    app[DOCUMENTS] = documents if documents is not None else TripDocumentStore()

    app.router.add_put("/api/trips/{trip_id}", handle_put_trip)
    app.router.add_get("/api/trips/by-code/{code}", handle_get_by_code)
    app.router.add_get("/api/health", handle_health)
    return app


async def run_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the reference store until cancelled.

    This is the main coroutine invoked from ``__main__.py``.
    """
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    host = host or settings.server_host
    port = port or settings.server_port

    runner = web.AppRunner(create_remote_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("Trip store running on http://%s:%d", host, port)

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
