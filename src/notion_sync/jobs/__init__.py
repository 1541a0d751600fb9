"""Job scheduling backends.

Exports:
    TaskScheduler: schedule_now / schedule_delayed contract.
    JobRegistry: Job name -> async handler mapping.
    StreamTaskScheduler: Durable Redis Streams backend.
    LocalTaskScheduler: In-process APScheduler fallback.
    JobConsumer: Worker loop for the Redis Streams backend.
    DeadLetterQueue: Crashed-job storage and replay.
"""

from __future__ import annotations

from src.notion_sync.jobs.base import JobHandler, JobRegistry, TaskScheduler, UnknownJobError
from src.notion_sync.jobs.schemas import DeadLetteredJob, JobMessage

__all__ = [
    "DeadLetterQueue",
    "JobConsumer",
    "JobHandler",
    "JobMessage",
    "DeadLetteredJob",
    "JobRegistry",
    "LocalTaskScheduler",
    "StreamTaskScheduler",
    "TaskScheduler",
    "UnknownJobError",
]


def __getattr__(name: str):  # noqa: N807
    """Lazy-load backends so importing the interface needs no Redis/APScheduler."""
    if name == "StreamTaskScheduler":
        from src.notion_sync.jobs.streams import StreamTaskScheduler

        return StreamTaskScheduler
    if name == "LocalTaskScheduler":
        from src.notion_sync.jobs.local import LocalTaskScheduler

        return LocalTaskScheduler
    if name == "JobConsumer":
        from src.notion_sync.jobs.consumer import JobConsumer

        return JobConsumer
    if name == "DeadLetterQueue":
        from src.notion_sync.jobs.dlq import DeadLetterQueue

        return DeadLetterQueue
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
