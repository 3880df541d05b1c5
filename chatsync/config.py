"""
Runtime configuration helpers for the chat sync client and store service.

Loads DATABASE_URL, cache location and notification switches from the
environment, with an optional .env file in the project root.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    database_url: str = Field(default="sqlite+pysqlite:///./chatsync.db", alias="DATABASE_URL")

    app_name: str = Field(default="Chat Sync", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    # Local warm-start cache
    cache_dir: Path = Field(default=Path.home() / ".chatsync", alias="CACHE_DIR")
    chat_history_key: str = Field(default="chat_history", alias="CHAT_HISTORY_KEY")
    profile_cache_key: str = Field(default="my_profile", alias="PROFILE_CACHE_KEY")

    notifications_enabled: bool = Field(default=True, alias="NOTIFICATIONS_ENABLED")
    toast_supported: bool = Field(default=True, alias="TOAST_SUPPORTED")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    resolved = settings or get_settings()
    level = getattr(logging, resolved.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["Settings", "configure_logging", "get_settings"]
