"""Lifecycle hook endpoint.

The host calls this once per request that changed posts. One call is one
batch: dedup and the status map cache live for the duration of the call.
Permanent deletions (``new_status == "deleted"``) are routed to the
delete hook, everything else to the transition hook.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from src.notion_sync.api.deps import get_runtime, verify_hook_secret
from src.notion_sync.runtime import SyncRuntime
from src.notion_sync.sync.schemas import LifecycleBatch, LifecycleBatchResult

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/hooks",
    tags=["hooks"],
    dependencies=[Depends(verify_hook_secret)],
)


@router.post(
    "/lifecycle",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=LifecycleBatchResult,
)
async def receive_lifecycle_events(
    body: LifecycleBatch,
    runtime: SyncRuntime = Depends(get_runtime),
) -> LifecycleBatchResult:
    """Accept a batch of lifecycle events and enqueue eligible syncs."""
    batch = runtime.new_batch()
    enqueued: list[int] = []

    for event in body.events:
        if event.is_deletion:
            accepted = await runtime.listener.on_delete(event, batch)
        else:
            accepted = await runtime.listener.on_transition(event, batch)
        if accepted:
            enqueued.append(event.post_id)

    logger.info(
        "hooks.batch_processed",
        batch_id=batch.batch_id,
        received=len(body.events),
        enqueued=len(enqueued),
    )
    return LifecycleBatchResult(received=len(body.events), enqueued=enqueued)
