"""WordPress -> Notion status sync core.

Provides the per-batch trigger listener, the job enqueuer, the Notion page
resolver, the sync executor with its retry controller, and the bounded
activity log. Data flows:

    SyncEvent -> StatusListener (filters + dedup) -> JobEnqueuer
      -> [task scheduler] -> SyncExecutor -> TargetResolver / NotionClient
      -> RetryController (on failure) -> ActivityLog (always)
"""

from src.notion_sync.sync.activity_log import ActivityLog
from src.notion_sync.sync.batch import SyncBatch
from src.notion_sync.sync.config import SyncConfig, build_status_map
from src.notion_sync.sync.enqueuer import SYNC_JOB_NAME, JobEnqueuer
from src.notion_sync.sync.exceptions import SyncError, TargetLookupError, TargetNotFoundError
from src.notion_sync.sync.executor import SyncExecutor
from src.notion_sync.sync.listener import StatusListener
from src.notion_sync.sync.resolver import TargetResolver
from src.notion_sync.sync.retry import MAX_RETRIES, RETRY_DELAYS, RetryController
from src.notion_sync.sync.schemas import (
    DELETED,
    EventSource,
    LogEntry,
    SyncEvent,
    SyncJob,
    SyncOutcome,
)
from src.notion_sync.sync.status_map import map_deletion, map_status

__all__ = [
    "ActivityLog",
    "DELETED",
    "EventSource",
    "JobEnqueuer",
    "LogEntry",
    "MAX_RETRIES",
    "RETRY_DELAYS",
    "RetryController",
    "StatusListener",
    "SYNC_JOB_NAME",
    "SyncBatch",
    "SyncConfig",
    "SyncError",
    "SyncEvent",
    "SyncExecutor",
    "SyncJob",
    "SyncOutcome",
    "TargetLookupError",
    "TargetNotFoundError",
    "TargetResolver",
    "build_status_map",
    "map_deletion",
    "map_status",
]
