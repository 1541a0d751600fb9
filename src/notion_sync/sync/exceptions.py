"""Sync pipeline exceptions.

Resolution failures are split by whether retrying can help:
``TargetLookupError`` is transient (network, non-2xx, no data sources) and
goes through the retry controller; ``TargetNotFoundError`` means no page
carries the post id, which retrying will not change.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for sync pipeline failures."""


class TargetLookupError(SyncError):
    """Data source discovery or query failed; safe to retry."""


class TargetNotFoundError(SyncError):
    """No page in any data source matches the post id."""

    def __init__(self, post_id: int) -> None:
        self.post_id = post_id
        super().__init__(f"No Notion page found for WP Post ID {post_id}")
