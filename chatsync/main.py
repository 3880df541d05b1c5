"""Application entry point for the message and profile store service."""
from __future__ import annotations

import logging
import os
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import configure_logging, get_settings
from .database import init_db
from .routers import messages_router, profiles_router, realtime_router
from .services.events import MESSAGES_CHANNEL, PROFILES_CHANNEL
from .services.message_stream import message_stream_manager

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version

app = FastAPI(title=APP_NAME, version=API_VERSION)

cors_origins = os.getenv("CORS_ORIGINS")
if cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(messages_router)
app.include_router(profiles_router)
app.include_router(realtime_router)


@app.on_event("startup")
async def _startup() -> None:
    """Ensure the database schema exists before serving."""

    configure_logging(settings)
    try:
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise
    logger.info("%s %s ready", APP_NAME, API_VERSION)


@app.get("/health", tags=["system"])
async def health() -> dict[str, object]:
    return {
        "status": "ok",
        "version": API_VERSION,
        "connections": {
            MESSAGES_CHANNEL: await message_stream_manager.connection_count(MESSAGES_CHANNEL),
            PROFILES_CHANNEL: await message_stream_manager.connection_count(PROFILES_CHANNEL),
        },
    }


__all__ = ["app"]
