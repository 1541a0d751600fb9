"""Lifecycle event listener: eligibility filters and per-batch dedup.

Two entry points mirror the host's hooks:

- ``on_transition`` for every status change (publish, draft, trash, restore)
- ``on_delete`` for permanent deletion, called by the host before it
  discards the post so the persisted page link is still readable

Both filter the event and enqueue at most one job per post per batch.
They return promptly and never raise for an ineligible event.
"""

from __future__ import annotations

import structlog

from src.notion_sync.core.monitoring import sync_jobs_enqueued_total
from src.notion_sync.sync.batch import SyncBatch
from src.notion_sync.sync.enqueuer import JobEnqueuer
from src.notion_sync.sync.schemas import EventSource, SyncEvent
from src.notion_sync.sync.status_map import map_deletion, map_status

logger = structlog.get_logger(__name__)


class StatusListener:
    """Turns host lifecycle events into sync jobs.

    Args:
        enqueuer: JobEnqueuer that schedules accepted events.
    """

    def __init__(self, enqueuer: JobEnqueuer) -> None:
        self._enqueuer = enqueuer

    async def on_transition(self, event: SyncEvent, batch: SyncBatch) -> bool:
        """Handle a status transition. Returns True if a job was enqueued."""
        mapped_status = map_status(batch.status_map, event.new_status)
        return await self._handle(event, batch, mapped_status, trigger="transition")

    async def on_delete(self, event: SyncEvent, batch: SyncBatch) -> bool:
        """Handle permanent deletion. Returns True if a job was enqueued."""
        return await self._handle(event, batch, map_deletion(batch.status_map), trigger="delete")

    async def _handle(
        self,
        event: SyncEvent,
        batch: SyncBatch,
        mapped_status: str | None,
        trigger: str,
    ) -> bool:
        config = batch.config

        # Loop prevention: the host applied this change on Notion's behalf
        if event.source == EventSource.REMOTE:
            return self._skip(event, batch, "inbound")

        if not config.is_enabled:
            return self._skip(event, batch, "disabled")

        if trigger == "transition" and event.new_status == event.old_status:
            return self._skip(event, batch, "unchanged")

        if event.is_revision or event.is_autosave:
            return self._skip(event, batch, "revision")

        if event.post_type not in config.syncable_post_types:
            return self._skip(event, batch, "post_type")

        if mapped_status is None:
            return self._skip(event, batch, "unmapped")

        if batch.is_queued(event.post_id):
            return self._skip(event, batch, "duplicate")

        await self._enqueuer.enqueue(event.post_id, mapped_status, event.notion_page_id)
        batch.mark_queued(event.post_id)
        sync_jobs_enqueued_total.labels(trigger=trigger).inc()
        return True

    @staticmethod
    def _skip(event: SyncEvent, batch: SyncBatch, reason: str) -> bool:
        logger.debug(
            "sync.event_skipped",
            post_id=event.post_id,
            new_status=event.new_status,
            reason=reason,
            batch_id=batch.batch_id,
        )
        return False
