"""Dead letter queue endpoints: review and replay crashed sync jobs.

Only the Redis Streams backend dead-letters jobs. With the in-process
fallback there is no queue and both endpoints answer 409.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from src.notion_sync.api.deps import get_runtime, verify_hook_secret
from src.notion_sync.jobs.dlq import DeadLetterQueue
from src.notion_sync.jobs.schemas import DeadLetteredJob
from src.notion_sync.runtime import SyncRuntime

router = APIRouter(
    prefix="/api/v1/sync/dlq",
    tags=["sync"],
    dependencies=[Depends(verify_hook_secret)],
)


class ReplayResult(BaseModel):
    dlq_message_id: str
    message_id: str


def _require_dlq(runtime: SyncRuntime) -> DeadLetterQueue:
    if runtime.dlq is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Dead letter queue requires the Redis backend",
        )
    return runtime.dlq


@router.get("", response_model=list[DeadLetteredJob])
async def list_dead_letters(
    limit: int = Query(default=50, ge=1, le=500),
    runtime: SyncRuntime = Depends(get_runtime),
) -> list[DeadLetteredJob]:
    """List dead-lettered sync jobs, oldest first."""
    dlq = _require_dlq(runtime)
    messages = await dlq.list_dlq_messages(runtime.settings.SYNC_JOB_GROUP, count=limit)
    return [DeadLetteredJob.from_stream_entry(message_id, data) for message_id, data in messages]


@router.post(
    "/{dlq_message_id}/replay",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ReplayResult,
)
async def replay_dead_letter(
    dlq_message_id: str,
    runtime: SyncRuntime = Depends(get_runtime),
) -> ReplayResult:
    """Put a dead-lettered job back on its stream."""
    dlq = _require_dlq(runtime)
    try:
        message_id = await dlq.replay_message(runtime.settings.SYNC_JOB_GROUP, dlq_message_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return ReplayResult(dlq_message_id=dlq_message_id, message_id=message_id)
