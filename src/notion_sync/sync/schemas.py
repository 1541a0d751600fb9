"""Pydantic schemas for the status sync pipeline.

Lifecycle events arrive from the host, are turned into sync jobs that
travel through the task scheduler as plain JSON dicts, and every job
attempt leaves an immutable log entry behind.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Reserved lifecycle state / status map key for permanent deletion.
DELETED = "deleted"


class EventSource(str, Enum):
    """Where a lifecycle change originated.

    REMOTE marks changes the host applied on behalf of Notion (inbound
    sync); those must never trigger an outbound sync.
    """

    LOCAL = "local"
    REMOTE = "remote"


class SyncEvent(BaseModel):
    """A single lifecycle change reported by the host."""

    post_id: int = Field(gt=0)
    post_type: str
    old_status: str = ""
    new_status: str
    source: EventSource = EventSource.LOCAL
    is_revision: bool = False
    is_autosave: bool = False
    # Persisted link to the Notion page, when the host keeps one
    notion_page_id: str | None = None

    @property
    def is_deletion(self) -> bool:
        return self.new_status == DELETED


class SyncJob(BaseModel):
    """Arguments of one ``notion_sync.update_status`` job."""

    post_id: int = Field(gt=0)
    notion_status: str = Field(min_length=1)
    notion_page_id: str | None = None

    def to_args(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SyncOutcome(str, Enum):
    """Terminal result of a single job execution."""

    SUCCEEDED = "succeeded"
    RETRY_SCHEDULED = "retry_scheduled"
    RATE_LIMITED = "rate_limited"
    ABANDONED = "abandoned"  # retry budget exhausted
    FAILED = "failed"  # configuration error or no matching page


class LogEntry(BaseModel):
    """One activity log record. Never mutated after insertion."""

    model_config = ConfigDict(frozen=True)

    post_id: int
    notion_page_id: str = ""
    notion_status: str
    status_code: int = 0
    success: bool
    error: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LifecycleBatch(BaseModel):
    """Webhook body: every event delivered by one host request."""

    events: list[SyncEvent] = Field(default_factory=list)


class LifecycleBatchResult(BaseModel):
    received: int
    enqueued: list[int] = Field(default_factory=list)
