"""Tests for the Notion REST client wrapper."""

from __future__ import annotations

import json

import httpx
import pytest

from src.notion_sync.notion.client import NotionClient, parse_retry_after
from src.notion_sync.notion.errors import (
    NotionAPIError,
    NotionError,
    NotionRateLimitedError,
    NotionResponseError,
    NotionTransportError,
)


def _client(handler) -> NotionClient:
    return NotionClient("secret_abc", transport=httpx.MockTransport(handler))


class TestParseRetryAfter:
    """Retry-After parsing, never below one second."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("5", 5), ("2.7", 2), ("0", 1), ("-3", 1), ("", 1), (None, 1), ("soon", 1)],
    )
    def test_values(self, value, expected):
        assert parse_retry_after(value) == expected


class TestNotionClient:
    """Requests, headers and error mapping."""

    async def test_headers_and_patch_body(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"object": "page"})

        status_code = await _client(handler).update_page_status("abc123", "Status", "Published")

        assert status_code == 200
        request = seen[0]
        assert request.method == "PATCH"
        assert str(request.url) == "https://api.notion.com/v1/pages/abc123"
        assert request.headers["Authorization"] == "Bearer secret_abc"
        assert request.headers["Notion-Version"] == "2025-09-03"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "properties": {"Status": {"select": {"name": "Published"}}}
        }

    async def test_retrieve_database(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/v1/databases/db-1"
            return httpx.Response(200, json={"data_sources": [{"id": "ds-1", "name": "Posts"}]})

        database = await _client(handler).retrieve_database("db-1")
        assert database["data_sources"][0]["id"] == "ds-1"

    async def test_query_returns_results(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/data_sources/ds-1/query"
            return httpx.Response(200, json={"results": [{"id": "p1"}]})

        results = await _client(handler).query_data_source("ds-1", {"property": "x"})
        assert results == [{"id": "p1"}]

    async def test_query_without_results_key(self):
        results = await _client(lambda r: httpx.Response(200, json={})).query_data_source("ds-1", {})
        assert results == []

    async def test_non_2xx_raises_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(NotionAPIError) as exc_info:
            await _client(handler).update_page_status("abc123", "Status", "Published")
        assert exc_info.value.status_code == 503
        assert str(exc_info.value) == "HTTP 503"
        assert exc_info.value.body == "Service Unavailable"

    async def test_429_raises_rate_limited_with_delay(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "5"})

        with pytest.raises(NotionRateLimitedError) as exc_info:
            await _client(handler).update_page_status("abc123", "Status", "Published")
        assert exc_info.value.retry_after == 5
        assert exc_info.value.status_code == 429

    async def test_429_without_header_waits_one_second(self):
        with pytest.raises(NotionRateLimitedError) as exc_info:
            await _client(lambda r: httpx.Response(429)).update_page_status("p", "Status", "x")
        assert exc_info.value.retry_after == 1

    async def test_transport_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NotionTransportError, match="timed out"):
            await _client(handler).retrieve_database("db-1")

    async def test_non_json_2xx_body_raises_response_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(NotionResponseError) as exc_info:
            await _client(handler).retrieve_database("db-1")
        assert exc_info.value.status_code == 200
        assert exc_info.value.body == "<html>gateway</html>"

    async def test_json_that_is_not_an_object_raises_response_error(self):
        with pytest.raises(NotionResponseError):
            await _client(lambda r: httpx.Response(200, json=["ds-1"])).retrieve_database("db-1")
        client = _client(lambda r: httpx.Response(200, json={"results": "none"}))
        with pytest.raises(NotionResponseError):
            await client.query_data_source("ds-1", {})

    async def test_response_error_is_a_notion_error(self):
        with pytest.raises(NotionError):
            await _client(lambda r: httpx.Response(200, text="")).query_data_source("ds-1", {})

    async def test_custom_base_url(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={})

        client = NotionClient(
            "k", base_url="http://notion.test/v1/", transport=httpx.MockTransport(handler),
        )
        await client.retrieve_database("db-1")
        assert seen == ["http://notion.test/v1/databases/db-1"]
