"""Shared fixtures for the Notion status sync tests.

Provides:
- clock / store / scheduler / notion: the test doubles from tests.fakes
- runtime: SyncRuntime wired over the doubles
- client: async HTTP client for the API with that runtime installed
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.notion_sync.config import Settings
from src.notion_sync.core.store import MemoryStore
from src.notion_sync.jobs.base import JobRegistry
from src.notion_sync.main import create_app
from src.notion_sync.runtime import SyncRuntime, wire
from tests.fakes import FakeClock, FakeNotion, FakeScheduler, make_settings


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def notion() -> FakeNotion:
    fake = FakeNotion()
    fake.pages[("ds-1", 42)] = "abc123"
    return fake


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def runtime(settings, store, scheduler, notion, clock) -> SyncRuntime:
    """Runtime wired over MemoryStore, FakeScheduler and FakeNotion."""
    return wire(
        settings, store, scheduler, JobRegistry(),
        client_factory=notion.client_factory,
        clock=clock,
    )


@pytest_asyncio.fixture
async def client(runtime) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the API with the test runtime installed."""
    app = create_app(runtime)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
