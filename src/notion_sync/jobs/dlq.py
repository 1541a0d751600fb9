"""Dead letter queue for jobs whose handler crashed.

Sync failures the executor understands (HTTP errors, missing pages,
misconfiguration) never reach here; they are logged and retried or
terminated by the executor itself. Only unexpected handler exceptions are
dead-lettered, for manual review and optional replay.

DLQ key pattern: notion_sync:jobs:{group}:dlq
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger(__name__)


class DeadLetterQueue:
    """Dead letter queue backed by Redis Streams.

    Args:
        redis: Raw async Redis client.
        prefix: Key namespace shared with the job streams.
    """

    def __init__(self, redis: aioredis.Redis, prefix: str = "notion_sync") -> None:
        self._redis = redis
        self._prefix = prefix

    def _stream_key(self, group: str) -> str:
        return f"{self._prefix}:jobs:{group}"

    def _dlq_key(self, group: str) -> str:
        return f"{self._stream_key(group)}:dlq"

    async def send_to_dlq(
        self,
        group: str,
        message_id: str,
        data: dict[str, str],
        error: str,
    ) -> str:
        """Store a failed job with failure metadata.

        Args:
            group: Scheduling group the job was consumed from.
            message_id: Original Redis message ID.
            data: Raw job data from the stream.
            error: Error message from the failed handler.

        Returns:
            DLQ message ID assigned by XADD.
        """
        dlq_key = self._dlq_key(group)

        dlq_data: dict[str, str] = {
            **data,
            "_dlq_original_id": message_id,
            "_dlq_error": error,
            "_dlq_timestamp": datetime.now(timezone.utc).isoformat(),
        }

        dlq_message_id = await self._redis.xadd(dlq_key, dlq_data)

        logger.warning(
            "job_dead_lettered",
            dlq_key=dlq_key,
            original_id=message_id,
            job_name=data.get("job_name"),
            error=error,
        )
        return dlq_message_id

    async def list_dlq_messages(
        self,
        group: str,
        count: int = 50,
    ) -> list[tuple[str, dict[str, Any]]]:
        """List dead-lettered jobs, oldest first."""
        return await self._redis.xrange(self._dlq_key(group), count=count)

    async def replay_message(self, group: str, dlq_message_id: str) -> str:
        """Re-publish a dead-lettered job to its stream and drop it from the DLQ.

        Raises:
            ValueError: If the DLQ message ID is not found.
        """
        dlq_key = self._dlq_key(group)

        messages = await self._redis.xrange(
            dlq_key,
            min=dlq_message_id,
            max=dlq_message_id,
            count=1,
        )

        if not messages:
            msg = f"DLQ message '{dlq_message_id}' not found in {dlq_key}"
            raise ValueError(msg)

        _msg_id, data = messages[0]
        replay_data = {k: v for k, v in data.items() if not k.startswith("_dlq_")}

        new_id = await self._redis.xadd(self._stream_key(group), replay_data)
        await self._redis.xdel(dlq_key, dlq_message_id)

        logger.info(
            "job_replayed",
            group=group,
            dlq_message_id=dlq_message_id,
            new_message_id=new_id,
        )
        return new_id
