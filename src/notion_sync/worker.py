"""Sync worker process: consumes sync jobs from Redis Streams.

Usage:
    python -m src.notion_sync.worker

Run as many workers as you want parallel syncs; each consumer name must be
unique. Without Redis there is nothing to consume (the API process runs
jobs itself on the APScheduler fallback), so the worker exits.
"""

from __future__ import annotations

import asyncio
import os
import signal
import socket

import structlog

from src.notion_sync.api.middleware.logging import configure_structlog
from src.notion_sync.config import get_settings
from src.notion_sync.core.store import close_redis
from src.notion_sync.jobs.consumer import JobConsumer
from src.notion_sync.jobs.streams import StreamTaskScheduler
from src.notion_sync.runtime import build_runtime

logger = structlog.get_logger(__name__)


def default_consumer_name() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


async def run_worker() -> int:
    configure_structlog()
    settings = get_settings()
    runtime = await build_runtime(settings)

    if not isinstance(runtime.scheduler, StreamTaskScheduler) or runtime.dlq is None:
        logger.error("worker.redis_required", redis_url=settings.REDIS_URL)
        await runtime.close()
        return 1

    consumer = JobConsumer(
        scheduler=runtime.scheduler,
        registry=runtime.registry,
        group=settings.SYNC_JOB_GROUP,
        consumer_name=settings.WORKER_CONSUMER_NAME or default_consumer_name(),
        dlq=runtime.dlq,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, consumer.stop)

    try:
        await consumer.process_loop()
    finally:
        await runtime.close()
        await close_redis()
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(run_worker()))


if __name__ == "__main__":
    main()
