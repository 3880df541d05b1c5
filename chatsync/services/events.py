"""Immutable event values passed from live subscriptions to the session loop."""
from __future__ import annotations

from dataclasses import dataclass

from ..schemas import ChangeType, Message, MessageChange, Profile, ProfileChange

MESSAGES_CHANNEL = "messages"
PROFILES_CHANNEL = "profiles"


@dataclass(frozen=True, slots=True)
class FeedUpdate:
    """Complete ordered message snapshot plus the changes that produced it."""

    messages: tuple[Message, ...]
    changes: tuple[MessageChange, ...] = ()

    @property
    def added(self) -> tuple[Message, ...]:
        return tuple(change.message for change in self.changes if change.type == ChangeType.ADDED)


@dataclass(frozen=True, slots=True)
class ProfilesUpdate:
    """Complete profile collection snapshot plus the changes that produced it."""

    profiles: tuple[Profile, ...]
    changes: tuple[ProfileChange, ...] = ()


@dataclass(frozen=True, slots=True)
class SubscriptionFailure:
    """Terminal error for a live subscription; no further events follow."""

    channel: str
    error: BaseException


__all__ = [
    "MESSAGES_CHANNEL",
    "PROFILES_CHANNEL",
    "FeedUpdate",
    "ProfilesUpdate",
    "SubscriptionFailure",
]
