"""Readers-wait-for-writers barrier for project refreshes."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable

logger = logging.getLogger(__name__)


class RefreshBarrier:
    """Tracks in-flight refreshes so analysis can wait for them to settle.

    Refreshes are not serialized against each other; only readers calling
    ``wait`` are held back until every refresh in flight at that moment has
    finished.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Future] = set()

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def track(self, awaitable: Awaitable[Any]) -> asyncio.Future:
        """Register ``awaitable`` as an in-flight refresh and return its future."""
        future = asyncio.ensure_future(awaitable)
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)
        return future

    async def wait(self) -> None:
        """Wait for all refreshes currently in flight.

        Refresh failures are not raised here; they surface to whoever awaits
        the refresh itself.
        """
        pending = list(self._pending)
        if not pending:
            return
        logger.debug("Waiting for %d in-flight refresh(es)", len(pending))
        await asyncio.gather(*pending, return_exceptions=True)
