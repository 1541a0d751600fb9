"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Redis (durable job queue + key/value store). Empty disables the probe.
    REDIS_URL: str = "redis://localhost:6379/0"

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # Notion status sync (mirrors the host's option fields)
    NOTION_SYNC_ENABLED: bool = False
    NOTION_API_KEY: str = ""
    NOTION_DATABASE_ID: str = ""
    NOTION_STATUS_PROPERTY: str = "Status"
    NOTION_STATUS_MAP: list[dict[str, str]] = []  # [{"wp_status": ..., "notion_status": ...}]
    NOTION_SYNC_POST_TYPES: list[str] = ["post", "page"]

    # Notion API
    NOTION_API_BASE: str = "https://api.notion.com/v1"
    NOTION_API_VERSION: str = "2025-09-03"
    NOTION_TIMEOUT: float = 10.0

    # Job scheduling
    SYNC_JOB_GROUP: str = "notion-sync"
    WORKER_CONSUMER_NAME: str = ""  # Defaults to hostname-pid

    # Shared secret the host sends as X-Hook-Secret (empty = not enforced)
    HOOK_SECRET: str = ""


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
