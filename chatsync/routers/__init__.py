"""Aggregate router exports."""
from .messages import router as messages_router
from .profiles import router as profiles_router
from .realtime import router as realtime_router

__all__ = [
    "messages_router",
    "profiles_router",
    "realtime_router",
]
