"""SQLAlchemy ORM model for published chat profiles, one row per identity."""
from __future__ import annotations

from sqlalchemy import Column, String, Text

from chatsync.database import Base


class ChatProfile(Base):
    __tablename__ = "chat_profiles"

    identity = Column(String(320), primary_key=True)
    display_name = Column(String(120), nullable=True)
    theme_color = Column(String(32), nullable=True)
    photo_data = Column(Text, nullable=True)


__all__ = ["ChatProfile"]
