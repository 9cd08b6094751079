"""Background refresh loop with failure backoff."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 15 * 60
DEFAULT_MAX_BACKOFF_SECONDS = 60 * 60
DEFAULT_FAILURE_THRESHOLD = 3


@dataclass
class FeedHealthStatus:
    """Outcome of recent refresh cycles, for an outer health endpoint."""

    last_success_at: datetime | None = None
    last_failure_at: datetime | None = None
    last_feed_count: int = 0
    consecutive_failures: int = 0

    def report_success(self, feed_count: int) -> None:
        self.last_success_at = datetime.now(timezone.utc)
        self.last_feed_count = feed_count
        self.consecutive_failures = 0

    def report_failure(self) -> None:
        self.last_failure_at = datetime.now(timezone.utc)
        self.consecutive_failures += 1

    def is_healthy(self, failure_threshold: int = DEFAULT_FAILURE_THRESHOLD) -> bool:
        """Healthy once a cycle has succeeded and failures stay under threshold."""
        return self.last_success_at is not None and self.consecutive_failures < failure_threshold


class RefreshScheduler:
    """Runs a refresh cycle immediately and then on a fixed cadence.

    Ticks are anchored to the start time, so a slow cycle does not shift the
    schedule; ticks missed while a cycle was running are dropped rather than
    run back to back. After ``failure_threshold`` consecutive failures each
    cycle is preceded by an exponentially growing backoff sleep.

    Example:
        >>> scheduler = RefreshScheduler(service.run_cycle, interval_seconds=900)
        >>> task = asyncio.create_task(scheduler.run())
        >>> scheduler.stop()
        >>> await task
    """

    def __init__(
        self,
        run_cycle: Callable[[], Awaitable[Any]],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        health: FeedHealthStatus | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            run_cycle: Coroutine function performing one refresh cycle
            interval_seconds: Time between ticks
            max_backoff_seconds: Ceiling for the failure backoff sleep
            failure_threshold: Consecutive failures before backoff kicks in
            health: Status object updated after every cycle
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")

        self._run_cycle = run_cycle
        self.interval_seconds = interval_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.failure_threshold = failure_threshold
        self.health = health or FeedHealthStatus()
        self.consecutive_failures = 0

        self._stop_event = asyncio.Event()
        self._cycle_task: asyncio.Task[Any] | None = None

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def backoff_delay(self) -> float:
        """Seconds to sleep before the next cycle; 0 below the threshold.

        At the threshold the delay is twice the interval and it doubles with
        each further failure, capped at ``max_backoff_seconds``.
        """
        if self.consecutive_failures < self.failure_threshold:
            return 0.0

        # Exponent is bounded so the multiplication can't overflow
        exponent = min(self.consecutive_failures - self.failure_threshold + 1, 32)
        return float(min(self.interval_seconds * 2**exponent, self.max_backoff_seconds))

    async def run(self) -> None:
        """Run cycles until :meth:`stop` is called."""
        loop = asyncio.get_running_loop()
        logger.info(f"Refresh scheduler started (interval {self.interval_seconds:g}s)")

        next_tick = loop.time() + self.interval_seconds
        await self.run_cycle()

        while not self.stopping:
            if not await self._wait(next_tick - loop.time()):
                break

            now = loop.time()
            next_tick += self.interval_seconds
            while next_tick <= now:
                next_tick += self.interval_seconds

            delay = self.backoff_delay()
            if delay > 0:
                logger.warning(
                    f"{self.consecutive_failures} consecutive failures, "
                    f"backing off {delay:g}s before next cycle"
                )
                if not await self._wait(delay):
                    break

            await self.run_cycle()

        logger.info("Refresh scheduler stopped")

    async def run_cycle(self) -> None:
        """Run one cycle and record its outcome.

        Exceptions from the cycle, including a podcast list that can't be
        loaded, are logged and counted. A cycle cancelled by :meth:`stop` is
        not counted as a failure.
        """
        self._cycle_task = asyncio.ensure_future(self._run_cycle())
        try:
            result = await self._cycle_task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if not self.stopping or (current is not None and current.cancelling()):
                raise
            logger.info("Refresh cycle cancelled by shutdown")
            return
        except Exception:
            self.consecutive_failures += 1
            self.health.report_failure()
            logger.exception(
                f"Refresh cycle failed ({self.consecutive_failures} consecutive failures)"
            )
            return
        finally:
            self._cycle_task = None

        self.consecutive_failures = 0
        feed_count = len(result) if isinstance(result, list) else 0
        self.health.report_success(feed_count)

    def stop(self) -> None:
        """Interrupt any wait and cancel the in-flight cycle."""
        self._stop_event.set()
        if self._cycle_task is not None and not self._cycle_task.done():
            self._cycle_task.cancel()

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; False if stop was requested meanwhile."""
        if self.stopping:
            return False
        if seconds <= 0:
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False
