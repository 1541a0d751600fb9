"""Bounded, newest-first log of sync attempts."""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from src.notion_sync.core.store import KeyValueStore
from src.notion_sync.sync.schemas import LogEntry

logger = structlog.get_logger(__name__)

LOG_KEY = "sync_log"
MAX_LOG_ENTRIES = 50
DEFAULT_LIMIT = 20


class ActivityLog:
    """Append-only ring buffer of LogEntry records (capacity 50).

    ``record`` prepends and truncates; entries are never edited.
    """

    def __init__(self, store: KeyValueStore, max_entries: int = MAX_LOG_ENTRIES) -> None:
        self._store = store
        self._max_entries = max_entries

    async def record(self, entry: LogEntry) -> None:
        await self._store.push(LOG_KEY, entry.model_dump_json(), self._max_entries)

    async def recent(self, limit: int = DEFAULT_LIMIT) -> list[LogEntry]:
        """Return up to ``limit`` entries, newest first."""
        limit = min(limit, self._max_entries)
        entries: list[LogEntry] = []
        for raw in await self._store.range(LOG_KEY, limit):
            try:
                entries.append(LogEntry.model_validate_json(raw))
            except ValidationError:
                logger.warning("activity_log.corrupt_entry", raw=raw[:200])
        return entries
