"""Per-batch sync context.

A batch is everything one host request reports (one webhook call). The
batch owns the deduplication set, so each post is enqueued at most once
per batch, and caches the status map so it is built once per batch and
picks up configuration changes on the next one.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from src.notion_sync.sync.config import SyncConfig


@dataclass
class SyncBatch:
    """Dedup set and cached status map for one triggering batch."""

    config: SyncConfig
    batch_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    _queued: set[int] = field(default_factory=set, repr=False)
    _status_map: dict[str, str] | None = field(default=None, repr=False)

    @property
    def status_map(self) -> dict[str, str]:
        if self._status_map is None:
            self._status_map = self.config.status_map()
        return self._status_map

    def is_queued(self, post_id: int) -> bool:
        return post_id in self._queued

    def mark_queued(self, post_id: int) -> None:
        self._queued.add(post_id)

    @property
    def queued(self) -> frozenset[int]:
        return frozenset(self._queued)
