"""Periodic reachability probe.

:class:`ConnectivityMonitor` decides online/offline by requesting a known
external URL.  Only reachability matters: any response below HTTP 500
counts as online, and a transport error or timeout counts as offline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import aiohttp

from tripsplit.config import settings

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """Probe ``probe_url`` every ``interval`` seconds.

    Defaults come from ``settings.connectivity_probe_url``,
    ``settings.connectivity_interval_seconds`` and
    ``settings.probe_timeout_seconds``.
    """

    def __init__(
        self,
        probe_url: str | None = None,
        interval: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.probe_url = probe_url or settings.connectivity_probe_url
        self.interval = interval if interval is not None else settings.connectivity_interval_seconds
        self._timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else settings.probe_timeout_seconds,
        )

    async def check(self) -> bool:
        """Run a single probe.  Never raises."""
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.head(self.probe_url, allow_redirects=True) as resp:
                    return resp.status < 500
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.debug("Connectivity probe to %s failed: %r", self.probe_url, exc)
            return False

    async def watch(self, on_result: Callable[[bool], None]) -> None:
        """Probe forever, reporting every result to *on_result*.

        Runs until cancelled.
        """
        while True:
            on_result(await self.check())
            await asyncio.sleep(self.interval)
