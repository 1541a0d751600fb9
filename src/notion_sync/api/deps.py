"""FastAPI dependency injection for the sync runtime and hook authentication."""

from __future__ import annotations

import secrets

from fastapi import Header, HTTPException, Request, status

from src.notion_sync.runtime import SyncRuntime


async def get_runtime(request: Request) -> SyncRuntime:
    """Get the SyncRuntime built during application startup."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sync runtime not initialized",
        )
    return runtime


async def verify_hook_secret(
    request: Request,
    x_hook_secret: str | None = Header(default=None),
) -> None:
    """Reject hook calls without the shared secret, when one is configured.

    Raises:
        HTTPException(401): If HOOK_SECRET is set and the header is missing
            or does not match.
    """
    runtime = await get_runtime(request)
    expected = runtime.settings.HOOK_SECRET
    if not expected:
        return
    if not x_hook_secret or not secrets.compare_digest(x_hook_secret.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing X-Hook-Secret header",
        )
