"""Async HTTP client wrapper for the Notion REST API.

Covers the three calls the status sync needs:

- ``GET /databases/{id}`` to discover the database's data sources
- ``POST /data_sources/{id}/query`` to find a page by WP Post ID
- ``PATCH /pages/{id}`` to set the status select property

The client does not retry; the sync executor schedules re-attempts
through the job queue. Every non-2xx response is raised as ``NotionAPIError``
(``NotionRateLimitedError`` for 429), every transport failure as
``NotionTransportError`` and a 2xx body that is not the expected JSON
object as ``NotionResponseError``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.notion_sync.notion.errors import (
    NotionAPIError,
    NotionRateLimitedError,
    NotionResponseError,
    NotionTransportError,
)

logger = structlog.get_logger(__name__)

API_BASE = "https://api.notion.com/v1"
API_VERSION = "2025-09-03"
DEFAULT_TIMEOUT = 10.0
MIN_RETRY_AFTER = 1


def parse_retry_after(value: str | None) -> int:
    """Parse a Retry-After header as whole seconds, never less than 1."""
    try:
        seconds = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        seconds = 0
    return max(seconds, MIN_RETRY_AFTER)


class NotionClient:
    """Async client for the Notion REST API.

    Uses a short-lived httpx.AsyncClient per call, bearer-token auth and a
    fixed Notion-Version header.

    Args:
        api_key: Notion integration secret.
        base_url: API root (override for testing).
        api_version: Value of the Notion-Version header.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = API_BASE,
        api_version: str = API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": api_version,
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client with auth headers and timeout."""
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and raise on transport failure or non-2xx status."""
        url = f"{self._base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.request(method, url, json=json)
        except httpx.TransportError as exc:
            logger.warning("notion.transport_error", method=method, path=path, error=str(exc))
            raise NotionTransportError(str(exc) or type(exc).__name__) from exc

        if response.is_success:
            return response

        if response.status_code == 429:
            raise NotionRateLimitedError(
                parse_retry_after(response.headers.get("retry-after")),
                body=response.text,
            )
        raise NotionAPIError(response.status_code, body=response.text)

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any]:
        """Decode a 2xx body that must be a JSON object."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning(
                "notion.malformed_response",
                status_code=response.status_code,
                path=response.request.url.path,
            )
            raise NotionResponseError(response.status_code, body=response.text)
        return data

    async def retrieve_database(self, database_id: str) -> dict[str, Any]:
        """GET /databases/{id}. The response lists ``data_sources``."""
        response = await self._request("GET", f"/databases/{database_id}")
        return self._json_object(response)

    async def query_data_source(
        self,
        data_source_id: str,
        filter: dict[str, Any],
        page_size: int = 1,
    ) -> list[dict[str, Any]]:
        """POST /data_sources/{id}/query and return the ``results`` list."""
        response = await self._request(
            "POST",
            f"/data_sources/{data_source_id}/query",
            json={"filter": filter, "page_size": page_size},
        )
        results = self._json_object(response).get("results") or []
        if not isinstance(results, list):
            raise NotionResponseError(response.status_code, body=response.text)
        return results

    async def update_page_status(
        self,
        page_id: str,
        property_name: str,
        status: str,
    ) -> int:
        """PATCH a page's select property. Returns the HTTP status code."""
        response = await self._request(
            "PATCH",
            f"/pages/{page_id}",
            json={"properties": {property_name: {"select": {"name": status}}}},
        )
        logger.debug(
            "notion.page_updated",
            page_id=page_id,
            property=property_name,
            status=status,
        )
        return response.status_code
