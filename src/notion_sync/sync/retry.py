"""Per-post retry budget with escalating-then-flat backoff.

The attempt counter for a post lives in the key/value store with a 1h
TTL, so a stale counter never blocks an unrelated failure later on.

    failure at attempt 0 -> retry in 30s,  attempt = 1
    failure at attempt 1 -> retry in 120s, attempt = 2
    failure at attempt 2 -> retry in 120s, attempt = 3
    failure at attempt 3 -> give up, counter cleared

Rate-limit retries (HTTP 429) are scheduled at the server's delay and do
not touch the counter.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from src.notion_sync.core.store import KeyValueStore
from src.notion_sync.jobs.base import TaskScheduler
from src.notion_sync.sync.enqueuer import DEFAULT_GROUP, SYNC_JOB_NAME
from src.notion_sync.sync.schemas import SyncJob

logger = structlog.get_logger(__name__)

MAX_RETRIES = 3
RETRY_DELAYS: tuple[int, ...] = (30, 120)  # seconds between retry 0->1, 1->2
DEFAULT_RETRY_DELAY = 120
RETRY_STATE_TTL = 60 * 60


def retry_key(post_id: int) -> str:
    return f"retry:{post_id}"


def retry_delay(attempt: int) -> int:
    if 0 <= attempt < len(RETRY_DELAYS):
        return RETRY_DELAYS[attempt]
    return DEFAULT_RETRY_DELAY


class RetryController:
    """Tracks attempts per post and schedules delayed re-execution.

    Args:
        store: Key/value store for attempt counters.
        scheduler: TaskScheduler used for delayed re-execution.
        group: Scheduling group of the sync job.
        clock: Epoch-seconds clock (injectable for tests).
    """

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: TaskScheduler,
        group: str = DEFAULT_GROUP,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._group = group
        self._clock = clock

    async def attempts(self, post_id: int) -> int:
        raw = await self._store.get(retry_key(post_id))
        try:
            return int(raw) if raw else 0
        except ValueError:
            return 0

    async def retry(self, job: SyncJob) -> int | None:
        """Schedule the next attempt after a failure.

        Returns:
            The delay in seconds, or None when the retry budget is spent
            (the counter is cleared and nothing is scheduled).
        """
        attempt = await self.attempts(job.post_id)

        if attempt >= MAX_RETRIES:
            logger.warning("retry.exhausted", post_id=job.post_id, attempts=attempt)
            await self.clear(job.post_id)
            return None

        delay = retry_delay(attempt)
        next_attempt = attempt + 1
        await self._store.set(retry_key(job.post_id), str(next_attempt), ex=RETRY_STATE_TTL)

        logger.info(
            "retry.scheduled",
            post_id=job.post_id,
            attempt=next_attempt,
            max_retries=MAX_RETRIES,
            delay=delay,
        )
        await self._schedule(job, delay)
        return delay

    async def retry_after_rate_limit(self, job: SyncJob, delay: int) -> int:
        """Schedule one retry at the server-requested delay, uncounted."""
        logger.info("retry.rate_limited", post_id=job.post_id, delay=delay)
        await self._schedule(job, delay)
        return delay

    async def clear(self, post_id: int) -> None:
        await self._store.delete(retry_key(post_id))

    async def _schedule(self, job: SyncJob, delay: int) -> None:
        await self._scheduler.schedule_delayed(
            self._clock() + delay,
            SYNC_JOB_NAME,
            job.to_args(),
            self._group,
        )
