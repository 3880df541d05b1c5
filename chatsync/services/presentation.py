"""Join messages with their sender's current profile at render time.

Precedence for every label field is: live directory entry, then the snapshot
embedded in the message, then a fallback derived from the identity. A user
who renames themselves therefore relabels their whole history for everyone.
"""
from __future__ import annotations

from typing import Iterable, Mapping

from ..constants import MY_FALLBACK_COLOR, OTHER_FALLBACK_COLOR
from ..schemas import DisplayMessage, IdentityContext, Message, Profile, ResolvedSender


def _first(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def fallback_name(identity: str) -> str:
    """Local part of an identity string, i.e. everything before ``@``."""
    local = identity.split("@", 1)[0]
    return local or identity


def resolve_sender(
    message: Message,
    profiles: Mapping[str, Profile],
    identity: IdentityContext,
) -> ResolvedSender:
    is_mine = message.sender_id == identity.identity
    live = profiles.get(message.sender_id)
    live_name = live.display_name if live else None
    live_color = live.theme_color if live else None
    live_photo = live.photo_data if live else None

    name = _first(live_name, message.sender_name) or fallback_name(message.sender_id)
    color = _first(live_color, message.sender_color) or (MY_FALLBACK_COLOR if is_mine else OTHER_FALLBACK_COLOR)
    photo = _first(live_photo, message.sender_photo)
    return ResolvedSender(name=name, color=color, photo=photo, is_mine=is_mine)


def join_messages(
    messages: Iterable[Message],
    profiles: Mapping[str, Profile],
    identity: IdentityContext,
) -> list[DisplayMessage]:
    return [
        DisplayMessage(message=message, sender=resolve_sender(message, profiles, identity))
        for message in messages
    ]


__all__ = ["fallback_name", "join_messages", "resolve_sender"]
