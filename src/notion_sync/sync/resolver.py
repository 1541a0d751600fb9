"""Locate the Notion page that mirrors a post.

Notion databases (API 2025-09-03) can fan out into several data sources,
so a lookup first discovers the database's data sources, then queries
each one in order for a page whose "WP Post ID" number property equals
the post id. Discovery results rarely change and are cached for 24h.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from src.notion_sync.core.store import KeyValueStore
from src.notion_sync.notion.client import NotionClient
from src.notion_sync.notion.errors import NotionError
from src.notion_sync.sync.exceptions import TargetLookupError, TargetNotFoundError

logger = structlog.get_logger(__name__)

POST_ID_PROPERTY = "WP Post ID"
DATA_SOURCE_CACHE_TTL = 24 * 60 * 60


def data_source_cache_key(database_id: str) -> str:
    return f"data_sources:{database_id}"


def _object_id(obj: Any) -> str | None:
    """The ``id`` of a Notion object, or None if it has no usable one."""
    if isinstance(obj, dict) and isinstance(obj.get("id"), str) and obj["id"]:
        return obj["id"]
    return None


class TargetResolver:
    """Find a post's Notion page id across all of a database's data sources.

    Args:
        client: NotionClient authenticated for the database.
        store: Key/value store holding the data source cache.
    """

    def __init__(self, client: NotionClient, store: KeyValueStore) -> None:
        self._client = client
        self._store = store

    async def data_source_ids(self, database_id: str) -> list[str]:
        """Return the database's data source ids, from cache when possible.

        Raises:
            TargetLookupError: Discovery failed or returned no data sources.
        """
        cache_key = data_source_cache_key(database_id)
        cached = await self._store.get(cache_key)
        if cached:
            try:
                ids = json.loads(cached)
            except ValueError:
                ids = None
            if isinstance(ids, list) and ids:
                return ids

        try:
            database = await self._client.retrieve_database(database_id)
        except NotionError as exc:
            logger.warning("resolver.discovery_failed", database_id=database_id, error=str(exc))
            raise TargetLookupError(f"Data source discovery failed: {exc}") from exc

        sources = database.get("data_sources")
        if not isinstance(sources, list):
            sources = []
        ids = [source_id for source_id in map(_object_id, sources) if source_id]
        if not ids:
            logger.warning("resolver.no_data_sources", database_id=database_id)
            raise TargetLookupError(f"No data sources found on database {database_id}")

        await self._store.set(cache_key, json.dumps(ids), ex=DATA_SOURCE_CACHE_TTL)
        logger.info("resolver.data_sources_cached", database_id=database_id, count=len(ids))
        return ids

    async def find_page(self, post_id: int, database_id: str) -> str:
        """Return the id of the page whose WP Post ID equals ``post_id``.

        Data sources are queried in order; the first hit wins.

        Raises:
            TargetLookupError: Any discovery or query request failed.
            TargetNotFoundError: No data source holds a matching page.
        """
        data_sources = await self.data_source_ids(database_id)
        post_filter = {"property": POST_ID_PROPERTY, "number": {"equals": post_id}}

        for source_id in data_sources:
            try:
                results = await self._client.query_data_source(source_id, post_filter, page_size=1)
            except NotionError as exc:
                logger.warning(
                    "resolver.query_failed",
                    post_id=post_id,
                    data_source_id=source_id,
                    error=str(exc),
                )
                raise TargetLookupError(f"Data source query failed: {exc}") from exc

            if results:
                page_id = next((_object_id(r) for r in results if _object_id(r)), None)
                if page_id is None:
                    logger.warning(
                        "resolver.result_without_id",
                        post_id=post_id,
                        data_source_id=source_id,
                    )
                    raise TargetLookupError(f"Data source {source_id} returned a result without an id")
                logger.debug(
                    "resolver.page_found",
                    post_id=post_id,
                    page_id=page_id,
                    data_source_id=source_id,
                )
                return page_id

        raise TargetNotFoundError(post_id)
