"""SQLAlchemy ORM model for the append-only group chat message collection."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Text

from chatsync.database import Base


def _new_message_id() -> str:
    return uuid.uuid4().hex


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String(64), primary_key=True, default=_new_message_id)
    text = Column(Text, nullable=False, default="")
    image_data = Column(Text, nullable=True)
    sender_id = Column(String(320), nullable=False, index=True)
    sender_name = Column(String(120), nullable=True)
    sender_photo = Column(Text, nullable=True)
    sender_color = Column(String(32), nullable=True)
    # Assigned by the store on insert, never by the client.
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


__all__ = ["ChatMessage"]
