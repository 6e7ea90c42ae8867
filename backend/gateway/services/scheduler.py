# backend/gateway/services/scheduler.py
"""
Background pre-computation of the "default" account trade duration.

Averaging trade duration over every configured account means pulling
each account's full history, which is slow enough that the result is
computed periodically and written to the cache under the same key that
get_average_trade_duration("default") reads.

The job runs on an APScheduler AsyncIOScheduler inside the application's
event loop and is started/stopped by the FastAPI lifespan. A failing run
is logged and never propagates out of the job.

Usage:
    job = DefaultTradeLengthJob(service, interval_minutes=10)
    job.start()
    ...
    job.stop()
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from gateway.services.gateway import AccountGatewayService
from gateway.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

JOB_ID = "default_trade_length_refresh"


class DefaultTradeLengthJob:
    """
    Periodic refresh of the cached "default" trade duration.

    Configuration:
        interval_minutes: Minutes between runs (default 10)
        run_immediately: Schedule the first run at start-up
    """

    def __init__(
            self,
            service: AccountGatewayService,
            interval_minutes: int = 10,
            run_immediately: bool = True,
            scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self.service = service
        self.interval_minutes = interval_minutes
        self.run_immediately = run_immediately
        self.scheduler = scheduler or AsyncIOScheduler()
        self._is_running = False
        self.last_run_at: datetime | None = None
        self.last_error: str | None = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        """Register the job and start the scheduler."""
        if self._is_running:
            logger.warning("Trade length refresh job already running")
            return

        self.scheduler.add_job(
            self.run,
            IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name="Default trade length refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc) if self.run_immediately else None,
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(f"Trade length refresh job started (every {self.interval_minutes} min)")

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running refresh."""
        if not self._is_running:
            return
        self.scheduler.shutdown(wait=False)
        self._is_running = False
        logger.info("Trade length refresh job stopped")

    async def run(self) -> dict[str, Any] | None:
        """
        Execute one refresh.

        Returns:
            The cached trade duration, or None if the run failed
        """
        set_correlation_id(f"job-{uuid.uuid4().hex[:12]}")
        try:
            result = await self.service.refresh_default_trade_duration()
            self.last_error = None
            logger.info(
                f"Default trade length refreshed: {result['total_trades']} trades, "
                f"average {result['average_trade_length_formatted']}"
            )
            return result
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Default trade length refresh failed: {e}", exc_info=True)
            return None
        finally:
            self.last_run_at = datetime.now(timezone.utc)
            clear_correlation_id()

    def get_status(self) -> dict[str, Any]:
        """Scheduler status for the health endpoint."""
        job = self.scheduler.get_job(JOB_ID) if self._is_running else None
        return {
            "is_running": self._is_running,
            "interval_minutes": self.interval_minutes,
            "next_run": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "last_run": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_error": self.last_error,
        }
