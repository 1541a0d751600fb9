"""Runtime wiring shared by the API process and the worker.

``build_runtime`` probes Redis once at startup and picks the backends:

- Redis reachable: RedisStore + StreamTaskScheduler (durable; jobs are run
  by ``src.notion_sync.worker``)
- Redis unreachable: MemoryStore + LocalTaskScheduler (APScheduler in the
  API process)

``wire`` assembles the sync components over whichever backends were chosen.
The Redis probe and pool use the ``REDIS_URL`` of the settings passed in.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from redis.exceptions import RedisError

from src.notion_sync.config import Settings, get_settings
from src.notion_sync.core.store import KeyValueStore, MemoryStore, RedisStore, get_redis_pool
from src.notion_sync.jobs.base import JobRegistry, TaskScheduler
from src.notion_sync.jobs.dlq import DeadLetterQueue
from src.notion_sync.jobs.local import LocalTaskScheduler
from src.notion_sync.jobs.streams import StreamTaskScheduler
from src.notion_sync.notion.client import NotionClient
from src.notion_sync.sync.activity_log import ActivityLog
from src.notion_sync.sync.batch import SyncBatch
from src.notion_sync.sync.config import SyncConfig
from src.notion_sync.sync.enqueuer import SYNC_JOB_NAME, JobEnqueuer
from src.notion_sync.sync.executor import ClientFactory, SyncExecutor
from src.notion_sync.sync.listener import StatusListener
from src.notion_sync.sync.retry import RetryController

logger = structlog.get_logger(__name__)


@dataclass
class SyncRuntime:
    """Everything the API routes and the worker need."""

    settings: Settings
    store: KeyValueStore
    scheduler: TaskScheduler
    registry: JobRegistry
    listener: StatusListener
    executor: SyncExecutor
    activity_log: ActivityLog
    dlq: DeadLetterQueue | None = None

    def sync_config(self) -> SyncConfig:
        return SyncConfig.from_settings(self.settings)

    def new_batch(self) -> SyncBatch:
        return SyncBatch(config=self.sync_config())

    async def close(self) -> None:
        await self.scheduler.close()


def notion_client_factory(settings: Settings) -> ClientFactory:
    def factory(api_key: str) -> NotionClient:
        return NotionClient(
            api_key,
            base_url=settings.NOTION_API_BASE,
            api_version=settings.NOTION_API_VERSION,
            timeout=settings.NOTION_TIMEOUT,
        )

    return factory


def wire(
    settings: Settings,
    store: KeyValueStore,
    scheduler: TaskScheduler,
    registry: JobRegistry,
    client_factory: ClientFactory | None = None,
    clock: Callable[[], float] = time.time,
    dlq: DeadLetterQueue | None = None,
) -> SyncRuntime:
    """Assemble the sync components and register the job handler."""
    activity_log = ActivityLog(store)
    retry = RetryController(store, scheduler, group=settings.SYNC_JOB_GROUP, clock=clock)
    executor = SyncExecutor(
        config_provider=lambda: SyncConfig.from_settings(settings),
        client_factory=client_factory or notion_client_factory(settings),
        store=store,
        retry=retry,
        activity_log=activity_log,
    )
    listener = StatusListener(JobEnqueuer(scheduler, group=settings.SYNC_JOB_GROUP))
    registry.register(SYNC_JOB_NAME, executor.handle)

    return SyncRuntime(
        settings=settings,
        store=store,
        scheduler=scheduler,
        registry=registry,
        listener=listener,
        executor=executor,
        activity_log=activity_log,
        dlq=dlq,
    )


async def redis_available(settings: Settings) -> bool:
    """Capability probe: is the configured Redis reachable?"""
    if not settings.REDIS_URL:
        return False
    try:
        return bool(await get_redis_pool(settings.REDIS_URL).ping())
    except (RedisError, OSError) as exc:
        logger.warning("runtime.redis_unavailable", error=str(exc))
        return False


async def build_runtime(settings: Settings | None = None) -> SyncRuntime:
    """Probe for Redis and build the runtime on the best available backend."""
    settings = settings or get_settings()
    registry = JobRegistry()

    if await redis_available(settings):
        redis = get_redis_pool(settings.REDIS_URL)
        runtime = wire(
            settings, RedisStore(redis), StreamTaskScheduler(redis), registry,
            dlq=DeadLetterQueue(redis),
        )
    else:
        local = LocalTaskScheduler(registry)
        local.start()
        runtime = wire(settings, MemoryStore(), local, registry)

    logger.info("runtime.ready", scheduler=runtime.scheduler.backend)
    return runtime
