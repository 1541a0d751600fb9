"""Sync job executor: resolve the page, patch its status, decide what next.

Runs as the ``notion_sync.update_status`` job handler. Every attempt
leaves exactly one activity log entry (plus a final entry when the retry
budget runs out), and no failure escapes to the caller:

- misconfiguration or a missing page terminates the job
- transport errors and non-2xx responses go through the retry controller
- HTTP 429 is retried at the server's Retry-After delay, uncounted
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from src.notion_sync.core.monitoring import sync_jobs_total
from src.notion_sync.core.store import KeyValueStore
from src.notion_sync.notion.client import NotionClient
from src.notion_sync.notion.errors import (
    NotionAPIError,
    NotionRateLimitedError,
    NotionTransportError,
)
from src.notion_sync.sync.activity_log import ActivityLog
from src.notion_sync.sync.config import SyncConfig
from src.notion_sync.sync.exceptions import TargetLookupError, TargetNotFoundError
from src.notion_sync.sync.resolver import TargetResolver
from src.notion_sync.sync.retry import RetryController
from src.notion_sync.sync.schemas import LogEntry, SyncJob, SyncOutcome

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[str], NotionClient]


class SyncExecutor:
    """Performs one status sync attempt for a post.

    Args:
        config_provider: Returns the current SyncConfig (read once per job).
        client_factory: Builds a NotionClient for an API key.
        store: Key/value store (data source cache).
        retry: RetryController for failure and rate-limit scheduling.
        activity_log: ActivityLog receiving one entry per attempt.
    """

    def __init__(
        self,
        config_provider: Callable[[], SyncConfig],
        client_factory: ClientFactory,
        store: KeyValueStore,
        retry: RetryController,
        activity_log: ActivityLog,
    ) -> None:
        self._config_provider = config_provider
        self._client_factory = client_factory
        self._store = store
        self._retry = retry
        self._log = activity_log

    async def handle(self, args: dict[str, Any]) -> None:
        """Job handler entry point: validate the argument dict and run."""
        await self.run(SyncJob.model_validate(args))

    async def run(self, job: SyncJob) -> SyncOutcome:
        outcome = await self._run(job)
        sync_jobs_total.labels(outcome=outcome.value).inc()
        return outcome

    async def _run(self, job: SyncJob) -> SyncOutcome:
        config = self._config_provider()

        api_key = config.api_key
        if not api_key:
            logger.error("notion_sync.not_configured", post_id=job.post_id, missing="api_key")
            await self._record(job, success=False, error="API key not configured")
            return SyncOutcome.FAILED

        database_id = config.database_id
        if not database_id:
            logger.error("notion_sync.not_configured", post_id=job.post_id, missing="database_id")
            await self._record(job, success=False, error="Database ID not configured")
            return SyncOutcome.FAILED

        client = self._client_factory(api_key)

        # Step 1 -- find the Notion page by WP Post ID (unless already linked)
        page_id = job.notion_page_id
        if not page_id:
            resolver = TargetResolver(client, self._store)
            try:
                page_id = await resolver.find_page(job.post_id, database_id)
            except TargetLookupError:
                await self._record(job, success=False, error="Database query failed")
                return await self._retry_failure(job, status_code=0)
            except TargetNotFoundError:
                logger.warning("notion_sync.page_not_found", post_id=job.post_id)
                await self._record(job, success=False, error="No Notion page found for WP Post ID")
                return SyncOutcome.FAILED
            job = job.model_copy(update={"notion_page_id": page_id})

        # Step 2 -- set the status property
        try:
            status_code = await client.update_page_status(
                page_id, config.status_property, job.notion_status,
            )
        except NotionRateLimitedError as exc:
            delay = exc.retry_after
            logger.warning("notion_sync.rate_limited", post_id=job.post_id, retry_after=delay)
            await self._record(
                job, status_code=429, success=False, error=f"Rate limited, retry in {delay}s",
            )
            await self._retry.retry_after_rate_limit(job, delay)
            return SyncOutcome.RATE_LIMITED
        except NotionAPIError as exc:
            logger.error(
                "notion_sync.http_error",
                post_id=job.post_id,
                page_id=page_id,
                status_code=exc.status_code,
                body=exc.body[:500],
            )
            await self._record(
                job, status_code=exc.status_code, success=False, error=f"HTTP {exc.status_code}",
            )
            return await self._retry_failure(job, status_code=exc.status_code)
        except NotionTransportError as exc:
            logger.error("notion_sync.transport_error", post_id=job.post_id, error=str(exc))
            await self._record(job, success=False, error=str(exc))
            return await self._retry_failure(job, status_code=0)

        logger.info(
            "notion_sync.synced",
            post_id=job.post_id,
            page_id=page_id,
            notion_status=job.notion_status,
        )
        await self._record(job, status_code=status_code, success=True)
        await self._retry.clear(job.post_id)
        return SyncOutcome.SUCCEEDED

    async def _retry_failure(self, job: SyncJob, status_code: int) -> SyncOutcome:
        delay = await self._retry.retry(job)
        if delay is not None:
            return SyncOutcome.RETRY_SCHEDULED

        logger.error("notion_sync.gave_up", post_id=job.post_id)
        await self._record(
            job, status_code=status_code, success=False, error="Max retries reached, giving up",
        )
        return SyncOutcome.ABANDONED

    async def _record(
        self,
        job: SyncJob,
        success: bool,
        status_code: int = 0,
        error: str = "",
    ) -> None:
        await self._log.record(
            LogEntry(
                post_id=job.post_id,
                notion_page_id=job.notion_page_id or "",
                notion_status=job.notion_status,
                status_code=status_code,
                success=success,
                error=error,
            )
        )
