"""Notion REST API client and error types."""

from src.notion_sync.notion.client import NotionClient, parse_retry_after
from src.notion_sync.notion.errors import (
    NotionAPIError,
    NotionError,
    NotionRateLimitedError,
    NotionResponseError,
    NotionTransportError,
)

__all__ = [
    "NotionClient",
    "NotionError",
    "NotionAPIError",
    "NotionRateLimitedError",
    "NotionResponseError",
    "NotionTransportError",
    "parse_retry_after",
]
