"""Activity log endpoint: the most recent sync attempts, newest first."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from src.notion_sync.api.deps import get_runtime
from src.notion_sync.runtime import SyncRuntime
from src.notion_sync.sync.activity_log import DEFAULT_LIMIT, MAX_LOG_ENTRIES
from src.notion_sync.sync.schemas import LogEntry

router = APIRouter(prefix="/api/v1/sync", tags=["sync"])


@router.get("/log", response_model=list[LogEntry])
async def get_sync_log(
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LOG_ENTRIES),
    runtime: SyncRuntime = Depends(get_runtime),
) -> list[LogEntry]:
    return await runtime.activity_log.recent(limit)
