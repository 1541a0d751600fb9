"""Task scheduler interface and job registry.

The sync core only ever asks for two things: run a named job as soon as
possible, or run it at/after an absolute time. ``TaskScheduler`` captures
that contract; the concrete backend (Redis Streams or APScheduler) is
chosen once at startup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

JobHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class UnknownJobError(LookupError):
    """No handler is registered under the requested job name."""


class JobRegistry:
    """Maps job names to async handlers taking the job's argument dict."""

    def __init__(self) -> None:
        self._handlers: dict[str, JobHandler] = {}

    def register(self, job_name: str, handler: JobHandler) -> None:
        self._handlers[job_name] = handler

    def get(self, job_name: str) -> JobHandler:
        try:
            return self._handlers[job_name]
        except KeyError:
            raise UnknownJobError(f"No handler registered for job '{job_name}'") from None

    def __contains__(self, job_name: object) -> bool:
        return job_name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


class TaskScheduler(ABC):
    """Schedules named jobs for asynchronous execution.

    Methods:
        schedule_now: Run a job as soon as a worker is free.
        schedule_delayed: Run a job at or after ``run_at`` (epoch seconds).
    Both return a backend-specific job id.
    """

    backend: str = "unknown"

    @abstractmethod
    async def schedule_now(self, job_name: str, args: dict[str, Any], group: str) -> str:
        """Enqueue a job for immediate execution."""
        ...

    @abstractmethod
    async def schedule_delayed(
        self,
        run_at: float,
        job_name: str,
        args: dict[str, Any],
        group: str,
    ) -> str:
        """Enqueue a job for execution at or after ``run_at``."""
        ...

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""
