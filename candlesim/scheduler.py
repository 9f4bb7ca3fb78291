"""
Interval scheduler driving refresh cycles.

The market data fetch is the only suspension point. A tick that comes due while
the previous one is still fetching or processing is skipped, so cycles for an
instrument never run concurrently.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

from .engine import PaperTradingEngine

logger = structlog.get_logger(__name__)

FetchCallable = Callable[[], Awaitable[Any]]


class IntervalScheduler:
    """Runs ``engine.run_cycle`` on batches returned by ``fetch`` at a fixed interval."""

    def __init__(
        self,
        fetch: FetchCallable,
        engine: PaperTradingEngine,
        interval_seconds: float = 10.0
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.fetch = fetch
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.logger = logger.bind(instrument_key=engine.instrument_key)

        self.completed_ticks = 0
        self.skipped_ticks = 0
        self.failed_fetches = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Stop scheduling new ticks. A tick in flight is allowed to finish."""
        self._running = False

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Schedule ticks until stopped or ``max_ticks`` tick slots have elapsed.

        Args:
            max_ticks: Number of tick slots to schedule; None runs until stop()
        """
        self._running = True
        pending: Optional[asyncio.Task] = None
        ticks = 0

        self.logger.info("Scheduler started", interval_seconds=self.interval_seconds)

        try:
            while self._running and (max_ticks is None or ticks < max_ticks):
                ticks += 1
                if pending is not None and not pending.done():
                    self.skipped_ticks += 1
                    self.logger.warning("Previous tick still running, skipping", tick=ticks)
                else:
                    pending = asyncio.create_task(self._tick())
                await asyncio.sleep(self.interval_seconds)
        finally:
            self._running = False
            if pending is not None and not pending.done():
                await pending

        self.logger.info(
            "Scheduler stopped",
            completed_ticks=self.completed_ticks,
            skipped_ticks=self.skipped_ticks,
            failed_fetches=self.failed_fetches
        )

    async def _tick(self) -> None:
        try:
            raw_batch = await self.fetch()
        except Exception as e:
            self.failed_fetches += 1
            self.logger.error("Market data fetch failed", error_type=type(e).__name__, error=str(e))
            return

        self.engine.run_cycle(raw_batch)
        self.completed_ticks += 1
