"""Pydantic schemas shared by the sync engine and the store service."""
from .messages import ChangeType, Message, MessageChange, MessageCreate, order_messages
from .profiles import DisplayMessage, LocalProfile, Profile, ProfileChange, ProfileUpdate, ResolvedSender
from .session import IdentityContext

__all__ = [
    "ChangeType",
    "Message",
    "MessageChange",
    "MessageCreate",
    "order_messages",
    "DisplayMessage",
    "LocalProfile",
    "Profile",
    "ProfileChange",
    "ProfileUpdate",
    "ResolvedSender",
    "IdentityContext",
]
