"""Notification primitives surfaced to the person using the chat."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import StrEnum

logger = logging.getLogger(__name__)


class NotificationType(StrEnum):
    VIBRATE = "vibrate"
    TOAST = "toast"
    ALERT = "alert"


class Notifier(ABC):
    """Haptic pulse, transient toast and blocking alert, all fire-and-forget."""

    supports_toast: bool = True

    @abstractmethod
    def vibrate(self) -> None:
        ...

    @abstractmethod
    def toast(self, text: str) -> None:
        ...

    @abstractmethod
    def alert(self, title: str, text: str) -> None:
        ...


class LoggingNotifier(Notifier):
    """Notifier for headless sessions: every notification becomes a log record."""

    def __init__(self, *, supports_toast: bool = True) -> None:
        self.supports_toast = supports_toast

    def vibrate(self) -> None:
        logger.info("[%s]", NotificationType.VIBRATE)

    def toast(self, text: str) -> None:
        logger.info("[%s] %s", NotificationType.TOAST, text)

    def alert(self, title: str, text: str) -> None:
        logger.warning("[%s] %s: %s", NotificationType.ALERT, title, text)


__all__ = ["LoggingNotifier", "NotificationType", "Notifier"]
