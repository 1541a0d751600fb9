"""Durable task scheduler on Redis Streams.

Ready jobs are appended to a stream per scheduling group and consumed
through a consumer group, so a job survives worker restarts until it is
acknowledged. Delayed jobs wait in a sorted set scored by their run time
and are promoted onto the stream by whichever worker sees them first.

Key pattern:
    notion_sync:jobs:{group}      ready jobs (stream)
    notion_sync:delayed:{group}   delayed jobs (sorted set, score = run_at)
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.notion_sync.jobs.base import TaskScheduler
from src.notion_sync.jobs.schemas import JobMessage

logger = structlog.get_logger(__name__)

CONSUMER_GROUP = "notion-sync-workers"

# Short in-process retry for enqueue; anything longer is a dispatch failure.
_enqueue_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
    reraise=True,
)


class StreamTaskScheduler(TaskScheduler):
    """Schedule jobs onto Redis Streams with a sorted set for delays.

    Args:
        redis: Raw async Redis client.
        prefix: Key namespace shared with the key/value store.
    """

    backend = "redis-streams"

    STREAM_MAXLEN: int = 10000
    PROMOTE_BATCH: int = 100

    def __init__(self, redis: aioredis.Redis, prefix: str = "notion_sync") -> None:
        self._redis = redis
        self._prefix = prefix

    def stream_key(self, group: str) -> str:
        return f"{self._prefix}:jobs:{group}"

    def delayed_key(self, group: str) -> str:
        return f"{self._prefix}:delayed:{group}"

    # ── Producer side ───────────────────────────────────────────────────

    @_enqueue_retry
    async def schedule_now(self, job_name: str, args: dict[str, Any], group: str) -> str:
        message = JobMessage(job_name=job_name, group=group, args=args)
        await self._append(message)
        return message.job_id

    @_enqueue_retry
    async def schedule_delayed(
        self,
        run_at: float,
        job_name: str,
        args: dict[str, Any],
        group: str,
    ) -> str:
        message = JobMessage(job_name=job_name, group=group, args=args, run_at=run_at)
        await self._redis.zadd(self.delayed_key(group), {message.model_dump_json(): run_at})
        logger.debug(
            "job_delayed",
            job_id=message.job_id,
            job_name=job_name,
            group=group,
            run_at=run_at,
        )
        return message.job_id

    async def _append(self, message: JobMessage) -> str:
        stream_key = self.stream_key(message.group)
        message_id = await self._redis.xadd(
            stream_key,
            message.to_stream_dict(),
            maxlen=self.STREAM_MAXLEN,
            approximate=True,
        )
        logger.debug(
            "job_enqueued",
            stream=stream_key,
            job_id=message.job_id,
            job_name=message.job_name,
            message_id=message_id,
        )
        return message_id

    async def promote_due(self, group: str, now: float) -> int:
        """Move delayed jobs whose run time has passed onto the stream.

        ZREM decides ownership: only the worker that removes a member
        appends it, so concurrent workers never double-promote.

        Returns:
            Number of jobs promoted.
        """
        key = self.delayed_key(group)
        members = await self._redis.zrangebyscore(
            key, "-inf", now, start=0, num=self.PROMOTE_BATCH,
        )

        promoted = 0
        for member in members:
            if not await self._redis.zrem(key, member):
                continue
            await self._append(JobMessage.model_validate_json(member))
            promoted += 1

        if promoted:
            logger.info("jobs_promoted", group=group, count=promoted)
        return promoted

    # ── Consumer side ───────────────────────────────────────────────────

    async def read(
        self,
        group: str,
        consumer: str,
        count: int = 10,
        block: int = 5000,
        consumer_group: str = CONSUMER_GROUP,
    ) -> list[tuple[str, list[tuple[str, dict[str, str]]]]]:
        """Read new jobs as a consumer in the consumer group.

        Creates the consumer group if it does not already exist.
        """
        stream_key = self.stream_key(group)

        try:
            await self._redis.xgroup_create(
                stream_key, consumer_group, id="0", mkstream=True,
            )
        except ResponseError:
            pass  # Group already exists

        return await self._redis.xreadgroup(
            groupname=consumer_group,
            consumername=consumer,
            streams={stream_key: ">"},
            count=count,
            block=block,
        )

    async def ack(
        self,
        group: str,
        message_id: str,
        consumer_group: str = CONSUMER_GROUP,
    ) -> None:
        await self._redis.xack(self.stream_key(group), consumer_group, message_id)

    async def reclaim(
        self,
        group: str,
        consumer: str,
        idle_time_ms: int = 60000,
        consumer_group: str = CONSUMER_GROUP,
    ) -> list[tuple[str, dict[str, str]]]:
        """Take over jobs left pending by dead or stalled consumers (XAUTOCLAIM)."""
        result = await self._redis.xautoclaim(
            self.stream_key(group),
            consumer_group,
            consumer,
            min_idle_time=idle_time_ms,
            start_id="0",
            count=10,
        )
        return result[1] if len(result) > 1 else []

    async def ping(self) -> bool:
        return bool(await self._redis.ping())
