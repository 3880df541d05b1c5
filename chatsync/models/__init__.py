"""Convenience exports for ORM models."""
from .message import ChatMessage
from .profile import ChatProfile

__all__ = [
    "ChatMessage",
    "ChatProfile",
]
