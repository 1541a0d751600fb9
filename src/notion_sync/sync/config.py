"""Sync options as the host exposes them.

The host keeps the sync options as named fields (enabled flag, API key,
database id, status property, status map rows, post types). ``SyncConfig``
reads those fields from any mapping and degrades every absent or empty
value to "disabled" or "no mapping".
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from src.notion_sync.config import Settings, get_settings

DEFAULT_STATUS_PROPERTY = "Status"
DEFAULT_POST_TYPES = ("post", "page")


def build_status_map(rows: Any) -> dict[str, str]:
    """Build the ordered state -> label map from repeated option rows.

    Rows missing either side are skipped; a later row for the same state
    replaces an earlier one.
    """
    status_map: dict[str, str] = {}
    if not isinstance(rows, (list, tuple)):
        return status_map

    for row in rows:
        if not isinstance(row, Mapping):
            continue
        wp_status = str(row.get("wp_status") or "").strip()
        notion_status = str(row.get("notion_status") or "").strip()
        if wp_status and notion_status:
            status_map[wp_status] = notion_status
    return status_map


class SyncConfig:
    """Read-only view over the host's sync option fields."""

    def __init__(self, fields: Mapping[str, Any]) -> None:
        self._fields = fields

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SyncConfig:
        settings = settings or get_settings()
        return cls(
            {
                "notion_sync_enabled": settings.NOTION_SYNC_ENABLED,
                "notion_api_key": settings.NOTION_API_KEY,
                "notion_database_id": settings.NOTION_DATABASE_ID,
                "notion_status_property": settings.NOTION_STATUS_PROPERTY,
                "notion_status_map": settings.NOTION_STATUS_MAP,
                "notion_sync_post_types": settings.NOTION_SYNC_POST_TYPES,
            }
        )

    def _text(self, name: str) -> str | None:
        value = self._fields.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @property
    def is_enabled(self) -> bool:
        return bool(self._fields.get("notion_sync_enabled"))

    @property
    def api_key(self) -> str | None:
        return self._text("notion_api_key")

    @property
    def database_id(self) -> str | None:
        return self._text("notion_database_id")

    @property
    def status_property(self) -> str:
        return self._text("notion_status_property") or DEFAULT_STATUS_PROPERTY

    @property
    def syncable_post_types(self) -> frozenset[str]:
        types = self._fields.get("notion_sync_post_types")
        if types is None:
            types = DEFAULT_POST_TYPES
        return frozenset(t for t in types if t and t != "attachment")

    def status_map(self) -> dict[str, str]:
        return build_status_map(self._fields.get("notion_status_map"))
