"""Stream job consumer.

Each iteration promotes due delayed jobs, reads ready jobs through the
consumer group, runs the registered handler and acknowledges the message.
Handlers own their retry policy (the sync executor schedules its own
re-attempts); a handler that raises is dead-lettered rather than retried.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from src.notion_sync.jobs.base import JobRegistry
from src.notion_sync.jobs.dlq import DeadLetterQueue
from src.notion_sync.jobs.schemas import JobMessage
from src.notion_sync.jobs.streams import StreamTaskScheduler

logger = structlog.get_logger(__name__)


class JobConsumer:
    """Consumes one scheduling group's jobs from Redis Streams.

    Args:
        scheduler: StreamTaskScheduler owning the stream and delayed set.
        registry: Job name -> handler mapping.
        group: Scheduling group to consume.
        consumer_name: Unique consumer identifier within the consumer group.
        dlq: DeadLetterQueue for crashed handlers.
        block_ms: How long XREADGROUP blocks waiting for new jobs.
        clock: Epoch-seconds clock used to decide which delayed jobs are due.
    """

    def __init__(
        self,
        scheduler: StreamTaskScheduler,
        registry: JobRegistry,
        group: str,
        consumer_name: str,
        dlq: DeadLetterQueue,
        block_ms: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._scheduler = scheduler
        self._registry = registry
        self._group = group
        self._consumer_name = consumer_name
        self._dlq = dlq
        self._block_ms = block_ms
        self._clock = clock
        self._running = False

    async def process_loop(self) -> None:
        """Run until stop() is called."""
        self._running = True
        logger.info(
            "consumer_started",
            group=self._group,
            consumer=self._consumer_name,
        )

        reclaimed = await self.reclaim_abandoned()
        if reclaimed:
            logger.info("consumer_reclaimed", count=reclaimed)

        while self._running:
            await self.run_once()

        logger.info("consumer_stopped", consumer=self._consumer_name)

    async def run_once(self) -> int:
        """Promote due jobs, then read and process one batch. Returns jobs processed."""
        await self._scheduler.promote_due(self._group, self._clock())

        messages = await self._scheduler.read(
            self._group,
            self._consumer_name,
            block=self._block_ms,
        )

        processed = 0
        for _stream_key, stream_messages in messages or []:
            for message_id, raw_data in stream_messages:
                await self._process(message_id, raw_data)
                processed += 1
        return processed

    async def reclaim_abandoned(self, idle_time_ms: int = 60000) -> int:
        """Process jobs a dead consumer read but never acknowledged."""
        reclaimed = await self._scheduler.reclaim(
            self._group,
            self._consumer_name,
            idle_time_ms=idle_time_ms,
        )
        for message_id, raw_data in reclaimed:
            if raw_data:  # Entries trimmed from the stream come back empty
                await self._process(message_id, raw_data)
            else:
                await self._scheduler.ack(self._group, message_id)
        return len(reclaimed)

    async def _process(self, message_id: str, raw_data: dict[str, str]) -> None:
        """Run one job; dead-letter it if the handler raises. Always acks."""
        try:
            message = JobMessage.from_stream_dict(raw_data)
            handler = self._registry.get(message.job_name)
            await handler(message.args)

            logger.debug(
                "job_processed",
                job_id=message.job_id,
                job_name=message.job_name,
                message_id=message_id,
            )

        except Exception as exc:
            logger.error(
                "job_failed",
                message_id=message_id,
                job_name=raw_data.get("job_name"),
                error=str(exc),
                exc_info=True,
            )
            await self._dlq.send_to_dlq(
                group=self._group,
                message_id=message_id,
                data=raw_data,
                error=str(exc),
            )

        await self._scheduler.ack(self._group, message_id)

    def stop(self) -> None:
        """Signal the processing loop to stop after current iteration."""
        self._running = False
