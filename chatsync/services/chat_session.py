"""Chat screen lifecycle: subscriptions, the event loop consumer and wiring."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable, Mapping

from ..config import Settings, get_settings
from ..database import SessionLocal
from ..schemas import DisplayMessage, IdentityContext, Message, Profile
from .cache_store import JsonFileKeyValueStore, LocalCacheStore
from .events import PROFILES_CHANNEL, FeedUpdate, ProfilesUpdate, SubscriptionFailure
from .message_composer import MessageComposer
from .message_feed import MessageFeedSubscriber
from .notifier import LoggingNotifier, Notifier
from .presentation import join_messages
from .profile_directory import ProfileDirectory
from .remote_store import RemoteStore, SqlRemoteStore
from .sync_reconciler import SyncReconciler

logger = logging.getLogger(__name__)

DisplayListener = Callable[[list[DisplayMessage]], None]


class ChatSession:
    """One activated chat screen.

    Subscriptions never touch component state directly: they push immutable
    events onto a queue and a single consumer task applies them in order, so
    the reconciler and the directory are only ever mutated from the loop.
    """

    def __init__(
        self,
        identity: IdentityContext,
        store: RemoteStore,
        cache: LocalCacheStore,
        notifier: Notifier,
        *,
        notifications_enabled: bool = True,
        scroll_to_end: Callable[[], None] | None = None,
    ) -> None:
        self.identity = identity
        self.store = store
        self.cache = cache
        self.notifier = notifier
        self._notifications_enabled = notifications_enabled
        self._scroll_to_end = scroll_to_end

        self.directory = ProfileDirectory(store)
        self.directory.add_listener(self._on_profiles_changed)
        self.composer = MessageComposer(identity, store, self.directory, notifier)
        self.reconciler = self._new_reconciler()
        self.feed: MessageFeedSubscriber | None = None

        self._display_listeners: list[DisplayListener] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[Any] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self.last_error: BaseException | None = None

    def _new_reconciler(self) -> SyncReconciler:
        reconciler = SyncReconciler(
            self.identity,
            self.cache,
            self.notifier,
            self.directory,
            notifications_enabled=self._notifications_enabled,
            scroll_to_end=self._scroll_to_end,
        )
        reconciler.add_listener(self._on_messages_changed)
        return reconciler

    @property
    def active(self) -> bool:
        return self._consumer is not None

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.reconciler.messages

    @property
    def profiles(self) -> Mapping[str, Profile]:
        return self.directory.current_profiles()

    def display(self) -> list[DisplayMessage]:
        return join_messages(self.reconciler.messages, self.directory.current_profiles(), self.identity)

    def add_display_listener(self, listener: DisplayListener) -> None:
        self._display_listeners.append(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def activate(self) -> None:
        if self.active:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self.last_error = None

        # Each activation is a full remount and starts from a cold reconciler.
        self.reconciler = self._new_reconciler()
        self.reconciler.warm_start()

        consumer = asyncio.create_task(self._consume())
        self._consumer = consumer
        # Subscribing runs the initial snapshot query; keep it off the loop.
        await asyncio.to_thread(self.directory.subscribe, self._enqueue)
        if self._consumer is not consumer:
            self.directory.unsubscribe()
            return
        feed = MessageFeedSubscriber(self.store, self._enqueue)
        self.feed = feed
        await asyncio.to_thread(feed.start)
        if self._consumer is not consumer:
            feed.stop()
            return
        logger.info("Chat session activated for %s", self.identity.identity)

    async def deactivate(self) -> None:
        if not self.active:
            return
        if self.feed is not None:
            self.feed.stop()
            self.feed = None
        self.directory.unsubscribe()

        consumer = self._consumer
        self._consumer = None
        self._queue = None
        if consumer is not None:
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
        logger.info("Chat session deactivated for %s", self.identity.identity)

    async def __aenter__(self) -> ChatSession:
        await self.activate()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.deactivate()

    async def drain(self) -> None:
        """Wait until every event queued so far has been applied."""
        await asyncio.sleep(0)
        queue = self._queue
        if queue is not None:
            await queue.join()

    async def send(self, text: str | None = None, image: str | None = None) -> Message | None:
        return await self.composer.send(text, image)

    # ------------------------------------------------------------------
    # Event plumbing
    # ------------------------------------------------------------------
    def _enqueue(self, event: Any) -> None:
        loop, queue = self._loop, self._queue
        if loop is None or queue is None:
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, event)
        except RuntimeError:
            logger.warning("Dropping %s: event loop is closed", type(event).__name__)

    async def _consume(self) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            event = await queue.get()
            try:
                self._dispatch(event)
            except Exception:
                logger.exception("Chat session failed to apply %s", type(event).__name__)
            finally:
                queue.task_done()

    def _dispatch(self, event: Any) -> None:
        if isinstance(event, FeedUpdate):
            self.reconciler.apply(event)
        elif isinstance(event, ProfilesUpdate):
            self.directory.apply(event)
        elif isinstance(event, SubscriptionFailure):
            self.last_error = event.error
            if event.channel == PROFILES_CHANNEL:
                self.directory.fail(event.error)
            logger.error("Subscription %s failed; showing last known data", event.channel)
        else:
            logger.warning("Ignoring unknown event %r", event)

    def _on_messages_changed(self, messages: tuple[Message, ...]) -> None:
        self._publish_display()

    def _on_profiles_changed(self, profiles: Mapping[str, Profile]) -> None:
        self._publish_display()

    def _publish_display(self) -> None:
        if not self._display_listeners:
            return
        rendered = self.display()
        for listener in list(self._display_listeners):
            try:
                listener(rendered)
            except Exception:
                logger.exception("Display listener failed")


def build_session(
    identity: IdentityContext,
    *,
    settings: Settings | None = None,
    store: RemoteStore | None = None,
    notifier: Notifier | None = None,
    scroll_to_end: Callable[[], None] | None = None,
) -> ChatSession:
    """Assemble a session from configuration with file-backed cache and SQL store."""
    resolved = settings or get_settings()
    cache = LocalCacheStore(
        JsonFileKeyValueStore(resolved.cache_dir),
        history_key=resolved.chat_history_key,
        profile_key=resolved.profile_cache_key,
    )
    return ChatSession(
        identity,
        store or SqlRemoteStore(SessionLocal),
        cache,
        notifier or LoggingNotifier(supports_toast=resolved.toast_supported),
        notifications_enabled=resolved.notifications_enabled,
        scroll_to_end=scroll_to_end,
    )


__all__ = ["ChatSession", "build_session"]
