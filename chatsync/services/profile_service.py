"""Publishing the local user's profile."""
from __future__ import annotations

import asyncio
import logging

from ..constants import DEFAULT_THEME_COLOR, DISPLAY_NAME_MAX_LENGTH, PROFILE_COLORS
from ..schemas import IdentityContext, LocalProfile, Profile, ProfileUpdate
from .cache_store import LocalCacheStore
from .remote_store import RemoteStore

logger = logging.getLogger(__name__)


class ProfileValidationError(ValueError):
    """Raised when a profile edit does not meet the naming policy."""


def validate_display_name(display_name: str | None) -> str:
    name = (display_name or "").strip()
    if not name:
        raise ProfileValidationError("Display name must not be empty")
    if len(name) > DISPLAY_NAME_MAX_LENGTH:
        raise ProfileValidationError(f"Display name must be at most {DISPLAY_NAME_MAX_LENGTH} characters")
    return name


def validate_theme_color(theme_color: str | None) -> str:
    if not theme_color:
        return DEFAULT_THEME_COLOR
    color = theme_color.upper()
    if color != DEFAULT_THEME_COLOR and color not in PROFILE_COLORS:
        raise ProfileValidationError(f"Unsupported theme color {theme_color}")
    return color


class ProfileService:
    def __init__(self, identity: IdentityContext, store: RemoteStore, cache: LocalCacheStore) -> None:
        self._identity = identity
        self._store = store
        self._cache = cache

    async def save_profile(
        self,
        display_name: str,
        theme_color: str | None = None,
        photo: str | None = None,
    ) -> Profile:
        """Publish name, color and photo, then mirror them into the local cache.

        Store errors propagate to the caller; the cache is only written once the
        remote write has succeeded.
        """
        name = validate_display_name(display_name)
        color = validate_theme_color(theme_color)
        update = ProfileUpdate(
            display_name=name,
            theme_color=color,
            photo_data=photo,
        )
        profile = await asyncio.to_thread(self._store.upsert_profile, self._identity.identity, update)
        self._cache.save_profile(
            LocalProfile(
                display_name=profile.display_name,
                theme_color=profile.theme_color,
                photo_data=profile.photo_data,
            )
        )
        logger.info("Profile published for %s", self._identity.identity)
        return profile

    async def skip_setup(self) -> Profile:
        """Publish only the default color and no photo, keeping any existing name."""
        update = ProfileUpdate(theme_color=DEFAULT_THEME_COLOR, photo_data=None)
        return await asyncio.to_thread(self._store.upsert_profile, self._identity.identity, update)

    def load_local_profile(self) -> LocalProfile | None:
        return self._cache.load_profile()


__all__ = ["ProfileService", "ProfileValidationError", "validate_display_name", "validate_theme_color"]
