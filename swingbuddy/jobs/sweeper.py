"""Expired state sweeper.

Expired states are already invisible to readers; the sweeper only keeps
the durable table from accumulating them. Rows are removed once they have
been expired for longer than a grace period.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta

from swingbuddy.conversation.models import utc_now
from swingbuddy.conversation.stores.cached import StateStoreCacheLayer
from swingbuddy.db.errors import StoreError
from swingbuddy.observability.logging import get_logger
from swingbuddy.observability.metrics import SWEPT_STATES

logger = get_logger(__name__)


class ExpiredStateSweeper:
    """Background loop deleting long-expired conversation states."""

    def __init__(
        self,
        store: StateStoreCacheLayer,
        interval_seconds: float = 300.0,
        grace_seconds: int = 3600,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize sweeper.

        Args:
            store: State facade (the sweeper never touches a tier directly)
            interval_seconds: Delay between sweeps
            grace_seconds: How long a state must have been expired to be deleted
            clock: Source of the current UTC time
        """
        self._store = store
        self._interval_seconds = interval_seconds
        self._grace = timedelta(seconds=grace_seconds)
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sweep loop in the background."""
        if self._running:
            logger.warning("sweeper_already_running")
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())

        logger.info(
            "sweeper_started",
            interval_seconds=self._interval_seconds,
            grace_seconds=self._grace.total_seconds(),
        )

    async def stop(self) -> None:
        """Stop the sweep loop."""
        if not self._running:
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("sweeper_stopped")

    async def run_once(self) -> int:
        """Delete states that expired more than the grace period ago."""
        cutoff = self._clock() - self._grace
        deleted = await self._store.purge_expired(cutoff)
        SWEPT_STATES.inc(deleted)
        if deleted:
            logger.info("expired_states_swept", count=deleted, cutoff=cutoff.isoformat())
        return deleted

    async def _sweep_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except StoreError as e:
                logger.error("sweep_failed", error=str(e))

            await asyncio.sleep(self._interval_seconds)
