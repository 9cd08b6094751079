"""Tests for the refresh scheduler."""

import asyncio
from unittest.mock import patch

import pytest

from podfeed.pipeline.scheduler import FeedHealthStatus, RefreshScheduler
from podfeed.utils.errors import ConfigNotFoundError, UpstreamError


class ScriptedCycle:
    """Cycle callable that raises or returns according to a script."""

    def __init__(self, script: list[Exception | list]):
        self.script = list(script)
        self.calls = 0

    async def __call__(self) -> list:
        self.calls += 1
        outcome = self.script.pop(0) if self.script else []
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestBackoffDelay:
    """Tests for backoff calculation."""

    @pytest.mark.parametrize(
        "failures,expected",
        [(0, 0), (1, 0), (2, 0), (3, 1800), (4, 3600), (5, 3600), (500, 3600)],
    )
    def test_default_policy(self, failures, expected):
        """Test 15 min interval doubles from the third failure, capped at 60 min."""
        scheduler = RefreshScheduler(ScriptedCycle([]))
        scheduler.consecutive_failures = failures

        assert scheduler.backoff_delay() == expected

    def test_rejects_invalid_settings(self):
        """Test interval and threshold must be positive."""
        with pytest.raises(ValueError):
            RefreshScheduler(ScriptedCycle([]), interval_seconds=0)
        with pytest.raises(ValueError):
            RefreshScheduler(ScriptedCycle([]), failure_threshold=0)


class TestRunCycle:
    """Tests for a single scheduled cycle."""

    @pytest.mark.asyncio
    async def test_failures_then_success_reset(self):
        """Test three failures then a success resets failures and backoff."""
        cycle = ScriptedCycle([
            UpstreamError("down"),
            UpstreamError("down"),
            UpstreamError("down"),
            ["feed-a", "feed-b"],
        ])
        scheduler = RefreshScheduler(cycle)

        for _ in range(3):
            await scheduler.run_cycle()

        assert scheduler.consecutive_failures == 3
        assert scheduler.backoff_delay() > 0
        assert scheduler.health.consecutive_failures == 3
        assert scheduler.health.last_failure_at is not None

        await scheduler.run_cycle()

        assert scheduler.consecutive_failures == 0
        assert scheduler.backoff_delay() == 0
        assert scheduler.health.last_feed_count == 2
        assert scheduler.health.is_healthy()

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, caplog):
        """Test a failed cycle is logged as an error."""
        scheduler = RefreshScheduler(ScriptedCycle([RuntimeError("boom")]))

        with caplog.at_level("ERROR", logger="podfeed.pipeline.scheduler"):
            await scheduler.run_cycle()

        assert "Refresh cycle failed" in caplog.text

    @pytest.mark.asyncio
    async def test_podcast_list_failure_counts_as_failure(self):
        """Test a podcast list that can't be loaded is counted, not raised."""
        scheduler = RefreshScheduler(ScriptedCycle([ConfigNotFoundError("no podcasts")]))

        await scheduler.run_cycle()

        assert not scheduler.stopping
        assert scheduler.consecutive_failures == 1
        assert scheduler.health.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight_cycle(self):
        """Test a cycle cancelled by shutdown is not counted as a failure."""
        started = asyncio.Event()

        async def slow_cycle() -> list:
            started.set()
            await asyncio.sleep(10)
            return []

        scheduler = RefreshScheduler(slow_cycle)
        task = asyncio.create_task(scheduler.run_cycle())
        await started.wait()

        scheduler.stop()
        await asyncio.wait_for(task, timeout=1)

        assert scheduler.consecutive_failures == 0
        assert scheduler.health.last_failure_at is None

    @pytest.mark.asyncio
    async def test_outer_cancellation_propagates(self):
        """Test cancelling the caller is never swallowed."""
        started = asyncio.Event()

        async def slow_cycle() -> list:
            started.set()
            await asyncio.sleep(10)
            return []

        scheduler = RefreshScheduler(slow_cycle)
        task = asyncio.create_task(scheduler.run_cycle())
        await started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestRun:
    """Tests for the scheduling loop."""

    @pytest.mark.asyncio
    async def test_runs_immediately_then_on_ticks(self):
        """Test the first cycle runs at once and later ones on the interval."""
        cycle = ScriptedCycle([])
        scheduler = RefreshScheduler(cycle, interval_seconds=0.05)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.01)
        assert cycle.calls == 1

        await asyncio.sleep(0.12)
        scheduler.stop()
        await asyncio.wait_for(task, timeout=1)

        assert 2 <= cycle.calls <= 4

    @pytest.mark.asyncio
    async def test_stop_interrupts_wait(self):
        """Test stop returns promptly even with a long interval."""
        scheduler = RefreshScheduler(ScriptedCycle([]), interval_seconds=3600)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.01)
        scheduler.stop()

        await asyncio.wait_for(task, timeout=1)

    @pytest.mark.asyncio
    async def test_backoff_delays_next_cycle(self, caplog):
        """Test cycles after the threshold wait out the backoff."""
        cycle = ScriptedCycle([UpstreamError("down")] * 10)
        scheduler = RefreshScheduler(cycle, interval_seconds=0.01, failure_threshold=1)

        with (
            caplog.at_level("WARNING", logger="podfeed.pipeline.scheduler"),
            patch.object(RefreshScheduler, "backoff_delay", return_value=3600.0),
        ):
            task = asyncio.create_task(scheduler.run())
            await asyncio.sleep(0.1)
            scheduler.stop()
            await asyncio.wait_for(task, timeout=1)

        assert cycle.calls == 1
        assert "backing off" in caplog.text

    @pytest.mark.asyncio
    async def test_keeps_ticking_after_config_errors(self):
        """Test run() carries on through cycles that can't load the podcast list."""
        cycle = ScriptedCycle([ConfigNotFoundError("gone"), ConfigNotFoundError("gone")])
        scheduler = RefreshScheduler(cycle, interval_seconds=0.01)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.1)
        scheduler.stop()
        await asyncio.wait_for(task, timeout=1)

        assert cycle.calls >= 3
        assert scheduler.consecutive_failures == 0
        assert scheduler.health.is_healthy()


class TestFeedHealthStatus:
    """Tests for FeedHealthStatus."""

    def test_initially_unhealthy(self):
        """Test no success yet means unhealthy."""
        assert not FeedHealthStatus().is_healthy()

    def test_unhealthy_after_threshold(self):
        """Test repeated failures after a success turn the status unhealthy."""
        status = FeedHealthStatus()
        status.report_success(3)
        for _ in range(3):
            status.report_failure()

        assert status.last_feed_count == 3
        assert not status.is_healthy(failure_threshold=3)
