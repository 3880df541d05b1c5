"""Schemas for published chat profiles and resolved sender labels."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import DISPLAY_NAME_MAX_LENGTH
from .messages import ChangeType, Message


class Profile(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    identity: str
    display_name: str | None = None
    theme_color: str | None = None
    photo_data: str | None = None


class ProfileUpdate(BaseModel):
    """Partial profile write; only fields explicitly set are merged."""

    display_name: str | None = Field(None, max_length=DISPLAY_NAME_MAX_LENGTH)
    theme_color: str | None = None
    photo_data: str | None = None

    @field_validator("display_name", mode="before")
    def strip_display_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class LocalProfile(BaseModel):
    """The local user's own profile snapshot kept in the warm-start cache."""

    model_config = ConfigDict(frozen=True)

    display_name: str | None = None
    theme_color: str | None = None
    photo_data: str | None = None


class ProfileChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ChangeType
    profile: Profile


class ResolvedSender(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    color: str
    photo: str | None = None
    is_mine: bool = False


class DisplayMessage(BaseModel):
    """A message paired with the sender label it should be rendered with."""

    model_config = ConfigDict(frozen=True)

    message: Message
    sender: ResolvedSender


__all__ = [
    "DisplayMessage",
    "LocalProfile",
    "Profile",
    "ProfileChange",
    "ProfileUpdate",
    "ResolvedSender",
]
