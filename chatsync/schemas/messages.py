"""Schemas describing chat messages and message feed changes."""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """A confirmed or pending chat message as seen by clients.

    ``created_at`` is assigned by the store; ``None`` marks a write that has
    not been confirmed yet.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    text: str = ""
    image_data: str | None = None
    sender_id: str
    sender_name: str | None = None
    sender_photo: str | None = None
    sender_color: str | None = None
    created_at: datetime | None = None


class MessageCreate(BaseModel):
    text: str = Field(default="", max_length=2000)
    image_data: str | None = None
    sender_id: str = Field(..., min_length=1)
    sender_name: str | None = None
    sender_photo: str | None = None
    sender_color: str | None = None

    def has_content(self) -> bool:
        return bool(self.text.strip()) or bool(self.image_data)


class ChangeType(StrEnum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class MessageChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ChangeType
    message: Message


def order_messages(messages: Iterable[Message]) -> list[Message]:
    """Return messages by ascending creation time with unconfirmed writes last.

    Ties and unconfirmed writes are ordered by id so the result does not depend
    on the order the documents arrived in.
    """
    items = list(messages)
    confirmed = [message for message in items if message.created_at is not None]
    pending = [message for message in items if message.created_at is None]
    confirmed.sort(key=lambda message: (message.created_at, message.id))
    pending.sort(key=lambda message: message.id)
    return confirmed + pending


__all__ = [
    "ChangeType",
    "Message",
    "MessageChange",
    "MessageCreate",
    "order_messages",
]
