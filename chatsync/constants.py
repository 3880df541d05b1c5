"""Project-wide constant values."""
from __future__ import annotations

DISPLAY_NAME_MAX_LENGTH = 12

DEFAULT_THEME_COLOR = "#8A2BE2"

PROFILE_COLORS = (
    "#FF5733",
    "#33FF57",
    "#3357FF",
    "#F033FF",
    "#FF33A8",
    "#33FFF5",
    "#FFA500",
    "#4B0082",
)

# Sender label colors used when neither the directory nor the message carries one.
# Own messages sit on a light blue bubble, everyone else's on light grey.
MY_FALLBACK_COLOR = "#1B4F72"
OTHER_FALLBACK_COLOR = "#555555"

NEW_MESSAGE_TOAST = "New message from {name}"  # short reusable message
SEND_FAILED_TITLE = "Send failed"
SEND_FAILED_DETAIL = "Something went wrong while sending the message."

__all__ = [
    "DISPLAY_NAME_MAX_LENGTH",
    "DEFAULT_THEME_COLOR",
    "PROFILE_COLORS",
    "MY_FALLBACK_COLOR",
    "OTHER_FALLBACK_COLOR",
    "NEW_MESSAGE_TOAST",
    "SEND_FAILED_TITLE",
    "SEND_FAILED_DETAIL",
]
