"""Test doubles and configuration builders for the Notion status sync tests.

Provides:
- FakeClock: settable clock for TTLs and delayed-job run times
- FakeScheduler: TaskScheduler that records calls instead of running jobs
- FakeNotion: httpx.MockTransport handler emulating the three Notion endpoints
- make_config / make_settings: configuration builders with sync enabled
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from src.notion_sync.config import Settings
from src.notion_sync.jobs.base import JobRegistry, TaskScheduler
from src.notion_sync.notion.client import NotionClient
from src.notion_sync.sync.config import SyncConfig

DATABASE_ID = "db-1"
API_KEY = "secret_test_key"

STATUS_MAP_ROWS = [
    {"wp_status": "publish", "notion_status": "Published"},
    {"wp_status": "draft", "notion_status": "Draft"},
    {"wp_status": "trash", "notion_status": "Archived"},
    {"wp_status": "deleted", "notion_status": "Deleted"},
]


# ── Clock ────────────────────────────────────────────────────────────────


class FakeClock:
    """Callable clock returning a settable epoch time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ── Scheduler ────────────────────────────────────────────────────────────


class FakeScheduler(TaskScheduler):
    """Records scheduled jobs; tests decide when (and whether) they run."""

    backend = "fake"

    def __init__(self) -> None:
        self.now_jobs: list[dict[str, Any]] = []
        self.delayed_jobs: list[dict[str, Any]] = []
        self._counter = 0

    def _next_id(self) -> str:
        self._counter += 1
        return f"job-{self._counter}"

    async def schedule_now(self, job_name: str, args: dict[str, Any], group: str) -> str:
        job_id = self._next_id()
        self.now_jobs.append({"id": job_id, "job_name": job_name, "args": args, "group": group})
        return job_id

    async def schedule_delayed(
        self,
        run_at: float,
        job_name: str,
        args: dict[str, Any],
        group: str,
    ) -> str:
        job_id = self._next_id()
        self.delayed_jobs.append(
            {"id": job_id, "run_at": run_at, "job_name": job_name, "args": args, "group": group}
        )
        return job_id

    async def run_now_jobs(self, registry: JobRegistry) -> int:
        """Run (and drop) every immediate job through the registry."""
        jobs, self.now_jobs = self.now_jobs, []
        for job in jobs:
            await registry.get(job["job_name"])(job["args"])
        return len(jobs)

    async def run_next_delayed(self, registry: JobRegistry) -> dict[str, Any]:
        """Pop the earliest delayed job and run it."""
        self.delayed_jobs.sort(key=lambda j: j["run_at"])
        job = self.delayed_jobs.pop(0)
        await registry.get(job["job_name"])(job["args"])
        return job


# ── Notion API double ────────────────────────────────────────────────────


class FakeNotion:
    """Emulates GET /databases, POST /data_sources/{id}/query and PATCH /pages.

    Attributes:
        data_sources: database_id -> ordered data source ids.
        pages: (data_source_id, post_id) -> page id.
        patch_responses: Queue of responses for PATCH; 200 once empty.
        database_response / query_response: Override the normal answer.
        requests: Every request received, in order.
    """

    def __init__(self) -> None:
        self.data_sources: dict[str, list[str]] = {DATABASE_ID: ["ds-1"]}
        self.pages: dict[tuple[str, int], str] = {}
        self.patch_responses: list[httpx.Response] = []
        self.database_response: httpx.Response | None = None
        self.query_response: httpx.Response | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")  # ["v1", resource, id, ...]

        if request.method == "GET" and parts[1] == "databases":
            if self.database_response is not None:
                return self.database_response
            sources = self.data_sources.get(parts[2])
            if sources is None:
                return httpx.Response(404, json={"object": "error", "code": "object_not_found"})
            return httpx.Response(
                200,
                json={"object": "database", "data_sources": [{"id": s} for s in sources]},
            )

        if request.method == "POST" and parts[1] == "data_sources":
            if self.query_response is not None:
                return self.query_response
            body = json.loads(request.content)
            post_id = body["filter"]["number"]["equals"]
            page_id = self.pages.get((parts[2], post_id))
            results = [{"object": "page", "id": page_id}] if page_id else []
            return httpx.Response(200, json={"object": "list", "results": results})

        if request.method == "PATCH" and parts[1] == "pages":
            if self.patch_responses:
                return self.patch_responses.pop(0)
            return httpx.Response(200, json={"object": "page", "id": parts[2]})

        return httpx.Response(400, json={"object": "error"})

    def calls(self, method: str, resource: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.strip("/").split("/")[1] == resource
        ]

    def client_factory(self, api_key: str) -> NotionClient:
        return NotionClient(api_key, transport=httpx.MockTransport(self.handler))


# ── Configuration builders ───────────────────────────────────────────────


def make_fields(**overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "notion_sync_enabled": True,
        "notion_api_key": API_KEY,
        "notion_database_id": DATABASE_ID,
        "notion_status_property": "Status",
        "notion_status_map": list(STATUS_MAP_ROWS),
        "notion_sync_post_types": ["post", "page"],
    }
    fields.update(overrides)
    return fields


def make_config(**overrides: Any) -> SyncConfig:
    return SyncConfig(make_fields(**overrides))


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "REDIS_URL": "",
        "NOTION_SYNC_ENABLED": True,
        "NOTION_API_KEY": API_KEY,
        "NOTION_DATABASE_ID": DATABASE_ID,
        "NOTION_STATUS_MAP": list(STATUS_MAP_ROWS),
        "HOOK_SECRET": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


