"""In-process fan-out of store changes to live subscribers."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from .events import SubscriptionFailure

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class Subscription:
    """Handle returned to a subscriber; closing it releases the listener."""

    def __init__(self, hub: SubscriptionHub, channel: str, listener: Listener) -> None:
        self._hub = hub
        self.channel = channel
        self.listener = listener
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._hub.release(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class SubscriptionHub:
    """Track per-channel listeners and deliver events to each of them."""

    def __init__(self) -> None:
        self._channels: dict[str, list[Subscription]] = {}
        self._lock = threading.RLock()

    def subscribe(self, channel: str, listener: Listener) -> Subscription:
        subscription = Subscription(self, channel, listener)
        with self._lock:
            self._channels.setdefault(channel, []).append(subscription)
        return subscription

    def release(self, subscription: Subscription) -> None:
        with self._lock:
            group = self._channels.get(subscription.channel)
            if group is None:
                return
            if subscription in group:
                group.remove(subscription)
            if not group:
                self._channels.pop(subscription.channel, None)

    def listener_count(self, channel: str) -> int:
        with self._lock:
            return len(self._channels.get(channel, ()))

    def deliver(self, subscription: Subscription, event: Any) -> bool:
        """Send ``event`` to one subscriber; a failing listener is dropped."""
        if not subscription.active:
            return False
        try:
            subscription.listener(event)
        except Exception:
            logger.exception("Listener on %s raised; releasing it", subscription.channel)
            subscription.close()
            return False
        return True

    def publish(self, channel: str, event: Any) -> int:
        with self._lock:
            targets = list(self._channels.get(channel, ()))
        delivered = 0
        for subscription in targets:
            if self.deliver(subscription, event):
                delivered += 1
        return delivered

    def fail(self, channel: str, error: BaseException) -> None:
        """Signal a terminal error to every listener on ``channel`` and release them."""
        with self._lock:
            targets = list(self._channels.get(channel, ()))
        failure = SubscriptionFailure(channel=channel, error=error)
        for subscription in targets:
            self.deliver(subscription, failure)
            subscription.close()


__all__ = ["Listener", "Subscription", "SubscriptionHub"]
