"""Tests for the lifecycle listener and job enqueuer.

Covers:
- Eligibility filters (inbound, disabled, unchanged, revision, post type, unmapped)
- Per-batch dedup across both hooks
- Deletion routing through the reserved "deleted" key
- JobEnqueuer job arguments and dispatch failure propagation
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.notion_sync.sync import listener as listener_module
from src.notion_sync.sync.batch import SyncBatch
from src.notion_sync.sync.enqueuer import SYNC_JOB_NAME, JobEnqueuer
from src.notion_sync.sync.listener import StatusListener
from src.notion_sync.sync.schemas import EventSource, SyncEvent
from tests.fakes import FakeScheduler, make_config


def _event(**overrides) -> SyncEvent:
    values = {
        "post_id": 42,
        "post_type": "post",
        "old_status": "draft",
        "new_status": "publish",
    }
    values.update(overrides)
    return SyncEvent(**values)


@pytest.fixture
def listener(scheduler) -> StatusListener:
    return StatusListener(JobEnqueuer(scheduler, group="notion-sync"))


@pytest.fixture
def batch() -> SyncBatch:
    return SyncBatch(config=make_config())


# ── Transition Hook ───────────────────────────────────────────────────────


class TestOnTransition:
    """Tests for status transition handling."""

    async def test_eligible_transition_enqueues_mapped_status(self, listener, batch, scheduler):
        """draft -> publish enqueues one job carrying the Notion label."""
        assert await listener.on_transition(_event(), batch) is True

        assert len(scheduler.now_jobs) == 1
        job = scheduler.now_jobs[0]
        assert job["job_name"] == SYNC_JOB_NAME
        assert job["group"] == "notion-sync"
        assert job["args"] == {"post_id": 42, "notion_status": "Published", "notion_page_id": None}
        assert batch.is_queued(42)

    async def test_inbound_change_is_ignored(self, listener, batch, scheduler):
        """Changes applied on Notion's behalf never sync back out."""
        event = _event(source=EventSource.REMOTE)
        assert await listener.on_transition(event, batch) is False
        assert scheduler.now_jobs == []

    async def test_disabled_sync_is_ignored(self, listener, scheduler):
        batch = SyncBatch(config=make_config(notion_sync_enabled=False))
        assert await listener.on_transition(_event(), batch) is False
        assert scheduler.now_jobs == []

    async def test_unchanged_status_is_ignored(self, listener, batch, scheduler):
        event = _event(old_status="publish", new_status="publish")
        assert await listener.on_transition(event, batch) is False
        assert scheduler.now_jobs == []

    async def test_revisions_and_autosaves_are_ignored(self, listener, batch, scheduler):
        assert await listener.on_transition(_event(is_revision=True), batch) is False
        assert await listener.on_transition(_event(is_autosave=True), batch) is False
        assert scheduler.now_jobs == []

    async def test_unselected_post_type_is_ignored(self, listener, batch, scheduler):
        assert await listener.on_transition(_event(post_type="product"), batch) is False
        assert await listener.on_transition(_event(post_type="attachment"), batch) is False
        assert scheduler.now_jobs == []

    async def test_unmapped_status_is_ignored(self, listener, batch, scheduler):
        event = _event(old_status="publish", new_status="archived")
        assert await listener.on_transition(event, batch) is False
        assert scheduler.now_jobs == []

    async def test_persisted_page_link_is_passed_through(self, listener, batch, scheduler):
        await listener.on_transition(_event(notion_page_id="abc123"), batch)
        assert scheduler.now_jobs[0]["args"]["notion_page_id"] == "abc123"


# ── Dedup ─────────────────────────────────────────────────────────────────


class TestBatchDedup:
    """Exactly one job per post per batch."""

    async def test_repeated_events_enqueue_once(self, listener, batch, scheduler):
        assert await listener.on_transition(_event(), batch) is True
        assert await listener.on_transition(_event(old_status="publish", new_status="draft"), batch) is False
        assert await listener.on_transition(_event(), batch) is False
        assert len(scheduler.now_jobs) == 1

    async def test_transition_then_delete_enqueues_once(self, listener, batch, scheduler):
        """Trash followed by permanent deletion in one request syncs once."""
        await listener.on_transition(_event(old_status="publish", new_status="trash"), batch)
        await listener.on_delete(_event(new_status="deleted"), batch)
        assert len(scheduler.now_jobs) == 1
        assert scheduler.now_jobs[0]["args"]["notion_status"] == "Archived"

    async def test_different_posts_each_enqueue(self, listener, batch, scheduler):
        await listener.on_transition(_event(post_id=1), batch)
        await listener.on_transition(_event(post_id=2), batch)
        assert [j["args"]["post_id"] for j in scheduler.now_jobs] == [1, 2]
        assert batch.queued == frozenset({1, 2})

    async def test_new_batch_allows_the_same_post_again(self, listener, scheduler):
        await listener.on_transition(_event(), SyncBatch(config=make_config()))
        await listener.on_transition(_event(), SyncBatch(config=make_config()))
        assert len(scheduler.now_jobs) == 2

    async def test_skipped_event_does_not_reserve_the_post(self, listener, batch, scheduler):
        """An ignored revision must not block the real change later in the batch."""
        await listener.on_transition(_event(is_revision=True), batch)
        assert await listener.on_transition(_event(), batch) is True


# ── Delete Hook ───────────────────────────────────────────────────────────


class TestOnDelete:
    """Tests for permanent deletion handling."""

    async def test_deletion_uses_deleted_mapping(self, listener, batch, scheduler):
        event = _event(old_status="trash", new_status="deleted", notion_page_id="abc123")
        assert await listener.on_delete(event, batch) is True
        assert scheduler.now_jobs[0]["args"] == {
            "post_id": 42,
            "notion_status": "Deleted",
            "notion_page_id": "abc123",
        }

    async def test_deletion_ignores_the_reported_status(self, listener, batch, scheduler):
        """The label comes from the deletion mapping, not from new_status."""
        assert await listener.on_delete(_event(new_status="publish"), batch) is True
        assert scheduler.now_jobs[0]["args"]["notion_status"] == "Deleted"

    async def test_deletion_looks_up_through_map_deletion(self, listener, batch, scheduler, monkeypatch):
        seen: list[dict] = []

        def fake_map_deletion(status_map):
            seen.append(status_map)
            return "Gone"

        monkeypatch.setattr(listener_module, "map_deletion", fake_map_deletion)
        assert await listener.on_delete(_event(new_status="deleted"), batch) is True
        assert seen == [batch.status_map]
        assert scheduler.now_jobs[0]["args"]["notion_status"] == "Gone"

    async def test_deletion_without_mapping_is_ignored(self, listener, scheduler):
        rows = [{"wp_status": "publish", "notion_status": "Published"}]
        batch = SyncBatch(config=make_config(notion_status_map=rows))
        assert await listener.on_delete(_event(new_status="deleted"), batch) is False
        assert scheduler.now_jobs == []

    async def test_inbound_deletion_is_ignored(self, listener, batch, scheduler):
        event = _event(new_status="deleted", source=EventSource.REMOTE)
        assert await listener.on_delete(event, batch) is False
        assert scheduler.now_jobs == []


# ── Enqueuer ──────────────────────────────────────────────────────────────


class TestJobEnqueuer:
    """Tests for handing jobs to the scheduler."""

    async def test_enqueue_returns_scheduler_job_id(self):
        scheduler = FakeScheduler()
        enqueuer = JobEnqueuer(scheduler, group="custom")
        job_id = await enqueuer.enqueue(7, "Draft")
        assert job_id == "job-1"
        assert scheduler.now_jobs[0]["group"] == "custom"

    async def test_dispatch_failure_propagates(self):
        """A scheduler that cannot accept work is a hard failure."""
        scheduler = AsyncMock()
        scheduler.backend = "broken"
        scheduler.schedule_now.side_effect = ConnectionError("redis down")
        enqueuer = JobEnqueuer(scheduler)

        with pytest.raises(ConnectionError, match="redis down"):
            await enqueuer.enqueue(7, "Draft")
