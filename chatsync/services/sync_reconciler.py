"""Merge the live message feed with the warm-start cache.

The reconciler owns the displayed message list. It starts ``cold`` showing
whatever the local cache held and turns ``live`` on the first feed snapshot;
there is no way back short of building a new reconciler. Each feed update
replaces the list wholesale, is written back to the cache, and raises one
new-message notification per newly added message from another sender.
"""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Callable

from ..constants import NEW_MESSAGE_TOAST
from ..schemas import IdentityContext, Message, order_messages
from .cache_store import LocalCacheStore
from .events import FeedUpdate
from .notifier import Notifier
from .presentation import resolve_sender
from .profile_directory import ProfileDirectory

logger = logging.getLogger(__name__)

MessagesListener = Callable[[tuple[Message, ...]], None]


class SyncState(StrEnum):
    COLD = "cold"
    LIVE = "live"


class SyncReconciler:
    def __init__(
        self,
        identity: IdentityContext,
        cache: LocalCacheStore,
        notifier: Notifier,
        directory: ProfileDirectory | None = None,
        *,
        notifications_enabled: bool = True,
        scroll_to_end: Callable[[], None] | None = None,
    ) -> None:
        self._identity = identity
        self._cache = cache
        self._notifier = notifier
        self._directory = directory
        self._notifications_enabled = notifications_enabled
        self._scroll_to_end = scroll_to_end
        self._listeners: list[MessagesListener] = []

        self._state = SyncState.COLD
        self._messages: tuple[Message, ...] = ()
        self._first_load = True

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages

    @property
    def first_load(self) -> bool:
        return self._first_load

    def add_listener(self, listener: MessagesListener) -> None:
        self._listeners.append(listener)

    def warm_start(self) -> tuple[Message, ...]:
        """Show the cached list while no feed snapshot has arrived yet."""
        if self._state is SyncState.COLD:
            self._messages = tuple(self._cache.load_messages())
            self._emit()
        return self._messages

    def apply(self, update: FeedUpdate) -> bool:
        """Process one feed callback; returns ``False`` if it was discarded."""
        try:
            ordered = tuple(order_messages(update.messages))
            incoming = self._incoming_from_others(update)
        except Exception:
            logger.exception("Discarding feed update; keeping %d displayed messages", len(self._messages))
            return False

        self._messages = ordered
        self._state = SyncState.LIVE
        self._cache.save_messages(ordered)

        for message in incoming:
            self._announce(message)

        self._first_load = False
        self._emit()
        self._request_scroll()
        return True

    def _incoming_from_others(self, update: FeedUpdate) -> list[Message]:
        if self._first_load or not self._notifications_enabled:
            return []
        # Only ids missing from the live list count; redelivered backlog stays quiet.
        known = {message.id for message in self._messages}
        incoming: list[Message] = []
        for message in update.added:
            if message.id in known or message.sender_id == self._identity.identity:
                continue
            known.add(message.id)
            incoming.append(message)
        return incoming

    def _announce(self, message: Message) -> None:
        try:
            profiles = self._directory.current_profiles() if self._directory is not None else {}
            sender = resolve_sender(message, profiles, self._identity)
            self._notifier.vibrate()
            if self._notifier.supports_toast:
                self._notifier.toast(NEW_MESSAGE_TOAST.format(name=sender.name))
        except Exception:
            logger.exception("New message notification failed for %s", message.id)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._messages)
            except Exception:
                logger.exception("Message list listener failed")

    def _request_scroll(self) -> None:
        if self._scroll_to_end is None:
            return
        try:
            self._scroll_to_end()
        except Exception:
            logger.exception("Scroll to end failed")


__all__ = ["SyncReconciler", "SyncState"]
