"""Hands eligible sync jobs to the task scheduler."""

from __future__ import annotations

import structlog

from src.notion_sync.jobs.base import TaskScheduler
from src.notion_sync.sync.schemas import SyncJob

logger = structlog.get_logger(__name__)

SYNC_JOB_NAME = "notion_sync.update_status"
DEFAULT_GROUP = "notion-sync"


class JobEnqueuer:
    """Schedules ``notion_sync.update_status`` for immediate execution.

    Dispatch errors are not caught here: a scheduler that cannot accept
    work is a hard dependency failure.
    """

    def __init__(self, scheduler: TaskScheduler, group: str = DEFAULT_GROUP) -> None:
        self._scheduler = scheduler
        self._group = group

    async def enqueue(
        self,
        post_id: int,
        notion_status: str,
        notion_page_id: str | None = None,
    ) -> str:
        job = SyncJob(post_id=post_id, notion_status=notion_status, notion_page_id=notion_page_id)
        job_id = await self._scheduler.schedule_now(SYNC_JOB_NAME, job.to_args(), self._group)
        logger.info(
            "sync.job_enqueued",
            post_id=post_id,
            notion_status=notion_status,
            job_id=job_id,
            backend=self._scheduler.backend,
        )
        return job_id
