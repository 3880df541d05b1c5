"""Live identity -> profile mapping fed by the remote profile collection."""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping

from ..schemas import Profile
from .events import PROFILES_CHANNEL, ProfilesUpdate, SubscriptionFailure
from .remote_store import RemoteStore, StoreError
from .subscriptions import Subscription

logger = logging.getLogger(__name__)

ProfilesListener = Callable[[Mapping[str, Profile]], None]


class ProfileDirectory:
    """Holds the latest published profile per identity.

    The mapping is rebuilt from the full collection snapshot on every event and
    swapped in whole, so readers never observe a half-applied update. Events
    that arrive while unsubscribed are lost; the next subscription starts from
    the then-current snapshot.
    """

    def __init__(self, store: RemoteStore) -> None:
        self._store = store
        self._profiles: Mapping[str, Profile] = MappingProxyType({})
        self._subscription: Subscription | None = None
        self._listeners: list[ProfilesListener] = []
        self.last_error: BaseException | None = None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def subscribe(self, sink: Callable[[Any], None] | None = None) -> None:
        """Attach to the profile collection.

        ``sink`` receives raw events; a session passes its queue here and
        calls :meth:`apply` from its own loop. Without a sink events are
        applied immediately.
        """
        if self.subscribed:
            return
        target = sink or self.handle
        self.last_error = None
        try:
            self._subscription = self._store.subscribe_profiles(target)
        except StoreError as exc:
            logger.exception("Profile subscription could not be established")
            target(SubscriptionFailure(channel=PROFILES_CHANNEL, error=exc))

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def add_listener(self, listener: ProfilesListener) -> None:
        self._listeners.append(listener)

    def handle(self, event: Any) -> None:
        if isinstance(event, SubscriptionFailure):
            self.fail(event.error)
        else:
            self.apply(event)

    def fail(self, error: BaseException) -> None:
        self.last_error = error
        self._subscription = None
        logger.error("Profile subscription ended: %s", error)

    def apply(self, update: ProfilesUpdate) -> None:
        self._profiles = MappingProxyType({profile.identity: profile for profile in update.profiles})
        for listener in list(self._listeners):
            try:
                listener(self._profiles)
            except Exception:
                logger.exception("Profile directory listener failed")

    def current_profiles(self) -> Mapping[str, Profile]:
        return self._profiles

    def get(self, identity: str) -> Profile | None:
        return self._profiles.get(identity)


__all__ = ["ProfileDirectory"]
