"""Health check endpoints.

Provides liveness (/health) and readiness (/health/ready). Readiness
reports the key/value store and which task scheduler backend was picked
at startup.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from src.notion_sync.api.deps import get_runtime
from src.notion_sync.config import get_settings
from src.notion_sync.runtime import SyncRuntime

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check.

    No external dependencies are checked -- just that the server is running.
    """
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


async def _check_dependencies(runtime: SyncRuntime) -> dict:
    """Check store connectivity and report the scheduler backend."""
    checks: dict = {"store": "ok", "scheduler": runtime.scheduler.backend}

    try:
        if not await runtime.store.ping():
            checks["store"] = "error"
            checks["store_error"] = "PING did not return PONG"
    except (RedisError, OSError) as e:
        checks["store"] = "error"
        checks["store_error"] = str(e)

    checks["sync_enabled"] = runtime.sync_config().is_enabled
    return checks


@router.get("/health/ready")
async def readiness_check(runtime: SyncRuntime = Depends(get_runtime)):
    """Readiness check: verifies the store answers.

    Returns 200 if it does, 503 otherwise.
    """
    checks = await _check_dependencies(runtime)
    healthy = checks["store"] == "ok"

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if healthy else "degraded",
            "checks": checks,
        },
    )
