# backend/tests/services/test_scheduler.py
"""
Tests for DefaultTradeLengthJob.

The APScheduler instance is mocked; run() is awaited directly.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from gateway.services.exceptions import UpstreamError
from gateway.services.scheduler import JOB_ID, DefaultTradeLengthJob
from gateway.utils.context import get_correlation_id

REFRESHED = {
    "average_trade_length_ms": 7_200_000,
    "average_trade_length_formatted": "2h",
    "total_trades": 2,
    "valid_trades": 1,
}


@pytest.fixture
def service():
    service = MagicMock()
    service.refresh_default_trade_duration = AsyncMock(return_value=REFRESHED)
    return service


@pytest.fixture
def scheduler():
    return MagicMock()


class TestLifecycle:
    """Tests for start/stop."""

    def test_start_registers_interval_job(self, service, scheduler):
        job = DefaultTradeLengthJob(service, interval_minutes=5, scheduler=scheduler)

        job.start()

        assert job.is_running
        scheduler.start.assert_called_once()
        _, kwargs = scheduler.add_job.call_args
        assert kwargs["id"] == JOB_ID
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
        assert kwargs["next_run_time"] is not None

    def test_start_without_immediate_run(self, service, scheduler):
        job = DefaultTradeLengthJob(service, run_immediately=False, scheduler=scheduler)

        job.start()

        _, kwargs = scheduler.add_job.call_args
        assert kwargs["next_run_time"] is None

    def test_start_twice_registers_once(self, service, scheduler):
        job = DefaultTradeLengthJob(service, scheduler=scheduler)

        job.start()
        job.start()

        scheduler.add_job.assert_called_once()

    def test_stop(self, service, scheduler):
        job = DefaultTradeLengthJob(service, scheduler=scheduler)
        job.start()

        job.stop()

        assert not job.is_running
        scheduler.shutdown.assert_called_once_with(wait=False)

    def test_stop_when_not_running_is_noop(self, service, scheduler):
        DefaultTradeLengthJob(service, scheduler=scheduler).stop()

        scheduler.shutdown.assert_not_called()


class TestRun:
    """Tests for a single refresh run."""

    @pytest.mark.asyncio
    async def test_successful_run(self, service, scheduler):
        job = DefaultTradeLengthJob(service, scheduler=scheduler)

        result = await job.run()

        assert result == REFRESHED
        assert job.last_run_at is not None
        assert job.last_error is None

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, service, scheduler):
        service.refresh_default_trade_duration.side_effect = UpstreamError("get-history.json", "down")
        job = DefaultTradeLengthJob(service, scheduler=scheduler)

        result = await job.run()

        assert result is None
        assert "down" in job.last_error
        assert job.get_status()["last_error"] == job.last_error

    @pytest.mark.asyncio
    async def test_correlation_id_cleared_after_run(self, service, scheduler):
        job = DefaultTradeLengthJob(service, scheduler=scheduler)

        await job.run()

        assert get_correlation_id() is None

    def test_status_when_stopped(self, service, scheduler):
        status = DefaultTradeLengthJob(service, interval_minutes=10, scheduler=scheduler).get_status()

        assert status == {
            "is_running": False,
            "interval_minutes": 10,
            "next_run": None,
            "last_run": None,
            "last_error": None,
        }
