"""Standing subscription to the remote message collection."""
from __future__ import annotations

import logging
from typing import Any, Callable

from .events import MESSAGES_CHANNEL, SubscriptionFailure
from .remote_store import RemoteStore, StoreError
from .subscriptions import Subscription

logger = logging.getLogger(__name__)

FeedSink = Callable[[Any], None]


class MessageFeedSubscriber:
    """Forward every ordered snapshot of the message collection to ``sink``.

    Reconnects are the transport's business. When the subscription ends with
    an error the failure is forwarded as a :class:`SubscriptionFailure` so the
    consumer knows the display may be stale.
    """

    def __init__(self, store: RemoteStore, sink: FeedSink) -> None:
        self._store = store
        self._sink = sink
        self._subscription: Subscription | None = None
        self.last_error: BaseException | None = None

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def failed(self) -> bool:
        return self.last_error is not None

    def start(self) -> None:
        if self.active:
            return
        self.last_error = None
        try:
            self._subscription = self._store.subscribe_messages(self._on_event)
        except StoreError as exc:
            logger.exception("Message feed subscription could not be established")
            self._on_event(SubscriptionFailure(channel=MESSAGES_CHANNEL, error=exc))

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def _on_event(self, event: Any) -> None:
        if isinstance(event, SubscriptionFailure):
            self.last_error = event.error
            self._subscription = None
            logger.error("Message feed subscription ended: %s", event.error)
        self._sink(event)


__all__ = ["MessageFeedSubscriber"]
