"""Supervised periodic background task.

Runs a coroutine on a fixed interval for the lifetime of the service. A tick
that raises is logged and the schedule carries on; only cancellation stops
the loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from chatwarden.util.logger import get_logger

logger = get_logger("periodic_task")


class PeriodicTask:
    """
    Reusable runner for one periodic maintenance job.

    Args:
        name: Human-readable name for logging (e.g., "BEHAVIOR SWEEP").
        tick: Async callable taking no arguments, awaited once per interval.
        get_interval: Callable returning the interval in seconds (called at start).
    """

    def __init__(
        self,
        name: str,
        tick: Callable[[], Awaitable[Any]],
        get_interval: Callable[[], float],
    ) -> None:
        self._name = name
        self._tick = tick
        self._get_interval = get_interval
        self._task: asyncio.Task | None = None
        self.ticks = 0
        self.failures = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """Run a single tick. Returns False if it raised."""
        self.ticks += 1
        try:
            await self._tick()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.failures += 1
            logger.error("[%s] Tick %d failed: %s", self._name, self.ticks, exc, exc_info=exc)
            return False
        return True

    async def _run_loop(self, interval: float) -> None:
        """Infinite loop: tick, sleep, repeat."""
        logger.info("[%s] Starting periodic task (interval=%.1fs)", self._name, interval)
        try:
            while True:
                await self.run_once()
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("[%s] Periodic task cancelled", self._name)
            raise

    def start(self) -> None:
        """Start the background task if not already running."""
        if self.running:
            logger.warning("[%s] Task already running", self._name)
            return
        interval = self._get_interval()
        self._task = asyncio.create_task(self._run_loop(interval), name=f"periodic:{self._name}")

    async def shutdown(self) -> None:
        """Cancel the task and wait for it to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("[%s] Periodic task shutdown complete (%d ticks, %d failed)", self._name, self.ticks, self.failures)
