"""Job message schema for the Redis Streams scheduler.

Jobs serialize to flat string dicts for Redis Streams (all field values
must be strings) and to JSON for the delayed-job sorted set.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class JobMessage(BaseModel):
    """A named job with its JSON-serializable arguments.

    Attributes:
        job_id: Unique identifier (auto-generated), also keeps delayed
            sorted-set members distinct.
        job_name: Registry key of the handler to run.
        group: Scheduling group; selects the stream the job lives on.
        args: Handler arguments.
        enqueued_at: UTC time the job was first scheduled.
        run_at: Epoch seconds for delayed jobs, None for immediate ones.
    """

    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    job_name: str
    group: str
    args: dict[str, Any] = Field(default_factory=dict)
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    run_at: float | None = None

    def to_stream_dict(self) -> dict[str, str]:
        return {
            "job_id": self.job_id,
            "job_name": self.job_name,
            "group": self.group,
            "args": json.dumps(self.args),
            "enqueued_at": self.enqueued_at.isoformat(),
            "run_at": "" if self.run_at is None else repr(self.run_at),
        }

    @classmethod
    def from_stream_dict(cls, raw: dict[str, str]) -> JobMessage:
        return cls(
            job_id=raw["job_id"],
            job_name=raw["job_name"],
            group=raw["group"],
            args=json.loads(raw["args"]) if raw.get("args") else {},
            enqueued_at=datetime.fromisoformat(raw["enqueued_at"]),
            run_at=float(raw["run_at"]) if raw.get("run_at") else None,
        )


class DeadLetteredJob(BaseModel):
    """A dead-lettered job as listed for manual review."""

    message_id: str
    job_name: str = ""
    args: dict[str, Any] = Field(default_factory=dict)
    error: str = ""
    original_id: str = ""
    dead_lettered_at: str = ""

    @classmethod
    def from_stream_entry(cls, message_id: str, data: dict[str, str]) -> DeadLetteredJob:
        try:
            args = json.loads(data.get("args") or "{}")
        except ValueError:
            args = {}
        return cls(
            message_id=message_id,
            job_name=data.get("job_name", ""),
            args=args if isinstance(args, dict) else {},
            error=data.get("_dlq_error", ""),
            original_id=data.get("_dlq_original_id", ""),
            dead_lettered_at=data.get("_dlq_timestamp", ""),
        )
