"""Lifecycle state -> Notion status label lookup."""

from __future__ import annotations

from collections.abc import Mapping

from src.notion_sync.sync.schemas import DELETED


def map_status(status_map: Mapping[str, str], state: str) -> str | None:
    """Return the Notion label for a lifecycle state, or None if unmapped.

    Permanent deletion is looked up under the reserved ``"deleted"`` key.
    """
    return status_map.get(state) or None


def map_deletion(status_map: Mapping[str, str]) -> str | None:
    return map_status(status_map, DELETED)
