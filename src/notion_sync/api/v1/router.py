"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.notion_sync.api.v1 import activity, dead_letters, health, hooks

router = APIRouter()

router.include_router(health.router)
router.include_router(hooks.router)
router.include_router(activity.router)
router.include_router(dead_letters.router)
