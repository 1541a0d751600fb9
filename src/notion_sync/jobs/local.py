"""In-process one-shot scheduler built on APScheduler.

Fallback for deployments without Redis: every scheduled job becomes a
single ``DateTrigger`` job on an AsyncIOScheduler running in the API
process. Jobs are not durable; a restart loses anything still pending.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from src.notion_sync.jobs.base import JobRegistry, TaskScheduler

logger = structlog.get_logger(__name__)


class LocalTaskScheduler(TaskScheduler):
    """Run jobs once at/after a point in time on the current event loop.

    Args:
        registry: Job name -> handler mapping.
        scheduler: AsyncIOScheduler to use (created if omitted).
    """

    backend = "apscheduler"

    def __init__(
        self,
        registry: JobRegistry,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._registry = registry
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self._started = False

    def start(self) -> None:
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("local_scheduler.started")

    def stop(self) -> None:
        """Shut down the scheduler."""
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False
            logger.info("local_scheduler.stopped")

    async def close(self) -> None:
        self.stop()

    async def schedule_now(self, job_name: str, args: dict[str, Any], group: str) -> str:
        return self._add(datetime.now(timezone.utc), job_name, args, group)

    async def schedule_delayed(
        self,
        run_at: float,
        job_name: str,
        args: dict[str, Any],
        group: str,
    ) -> str:
        return self._add(datetime.fromtimestamp(run_at, tz=timezone.utc), job_name, args, group)

    def _add(self, run_date: datetime, job_name: str, args: dict[str, Any], group: str) -> str:
        job_id = uuid.uuid4().hex
        self._scheduler.add_job(
            self._run,
            trigger=DateTrigger(run_date=run_date),
            args=[job_name, args],
            id=job_id,
            name=f"{group}:{job_name}",
            misfire_grace_time=3600,
        )
        logger.debug(
            "local_scheduler.job_added",
            job_id=job_id,
            job_name=job_name,
            run_date=run_date.isoformat(),
        )
        return job_id

    async def _run(self, job_name: str, args: dict[str, Any]) -> None:
        try:
            handler = self._registry.get(job_name)
            await handler(args)
        except Exception:
            logger.exception("local_scheduler.job_failed", job_name=job_name, args=args)
