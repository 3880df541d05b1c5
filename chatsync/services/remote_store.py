"""Remote message and profile collections backed by SQLAlchemy.

The store plays the part of the authoritative document store: messages are
append-only and receive a server-assigned, strictly increasing timestamp,
profiles are one document per identity with upsert-with-merge semantics.
Every write fans the full collection snapshot out to live subscribers.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..database import SessionLocal
from ..models import ChatMessage, ChatProfile
from ..schemas import (
    ChangeType,
    Message,
    MessageChange,
    MessageCreate,
    Profile,
    ProfileChange,
    ProfileUpdate,
    order_messages,
)
from .events import MESSAGES_CHANNEL, PROFILES_CHANNEL, FeedUpdate, ProfilesUpdate
from .subscriptions import Listener, Subscription, SubscriptionHub

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_TICK = timedelta(microseconds=1)


class StoreError(RuntimeError):
    """Raised when the remote store cannot serve a read."""


class SubmissionError(StoreError):
    """Raised when a write to the remote store fails."""


class RemoteStore(ABC):
    """Contract of the authoritative message and profile collections."""

    @abstractmethod
    def add_message(self, payload: MessageCreate) -> Message:
        """Append a message; the store assigns ``id`` and ``created_at``."""

    @abstractmethod
    def list_messages(self) -> list[Message]:
        ...

    @abstractmethod
    def subscribe_messages(self, listener: Listener) -> Subscription:
        """Deliver the current snapshot now and a new one after every change."""

    @abstractmethod
    def upsert_profile(self, identity: str, update: ProfileUpdate) -> Profile:
        ...

    @abstractmethod
    def get_profile(self, identity: str) -> Profile | None:
        ...

    @abstractmethod
    def list_profiles(self) -> list[Profile]:
        ...

    @abstractmethod
    def subscribe_profiles(self, listener: Listener) -> Subscription:
        ...


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_message(row: ChatMessage) -> Message:
    return Message(
        id=row.id,
        text=row.text or "",
        image_data=row.image_data,
        sender_id=row.sender_id,
        sender_name=row.sender_name,
        sender_photo=row.sender_photo,
        sender_color=row.sender_color,
        created_at=_as_utc(row.created_at) if row.created_at is not None else None,
    )


def _to_profile(row: ChatProfile) -> Profile:
    return Profile.model_validate(row)


class SqlRemoteStore(RemoteStore):
    """SQLAlchemy implementation with in-process change fan-out."""

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        *,
        hub: SubscriptionHub | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._hub = hub or SubscriptionHub()
        self._clock = clock
        self._last_timestamp: datetime | None = None
        # Serialises writes with snapshot fan-out so subscribers see changes in commit order.
        self._lock = threading.RLock()

    @property
    def hub(self) -> SubscriptionHub:
        return self._hub

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def _next_timestamp(self, db: Session) -> datetime:
        if self._last_timestamp is None:
            latest = db.scalar(select(func.max(ChatMessage.created_at)))
            self._last_timestamp = _as_utc(latest) if latest is not None else None
        candidate = _as_utc(self._clock())
        if self._last_timestamp is not None and candidate <= self._last_timestamp:
            candidate = self._last_timestamp + _TICK
        self._last_timestamp = candidate
        return candidate

    def _select_messages(self, db: Session) -> list[Message]:
        rows = db.scalars(select(ChatMessage).order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc()))
        return order_messages(_to_message(row) for row in rows)

    def add_message(self, payload: MessageCreate) -> Message:
        with self._lock:
            with self._session_factory() as db:
                try:
                    row = ChatMessage(
                        text=payload.text,
                        image_data=payload.image_data,
                        sender_id=payload.sender_id,
                        sender_name=payload.sender_name,
                        sender_photo=payload.sender_photo,
                        sender_color=payload.sender_color,
                        created_at=self._next_timestamp(db),
                    )
                    db.add(row)
                    db.commit()
                except SQLAlchemyError as exc:
                    db.rollback()
                    self._last_timestamp = None
                    raise SubmissionError("Failed to store message") from exc

                message = _to_message(row)
                try:
                    snapshot = self._select_messages(db)
                except SQLAlchemyError as exc:
                    logger.exception("Message snapshot query failed after insert")
                    self._hub.fail(MESSAGES_CHANNEL, exc)
                    return message

            change = MessageChange(type=ChangeType.ADDED, message=message)
            self._hub.publish(MESSAGES_CHANNEL, FeedUpdate(messages=tuple(snapshot), changes=(change,)))
        return message

    def list_messages(self) -> list[Message]:
        with self._session_factory() as db:
            try:
                return self._select_messages(db)
            except SQLAlchemyError as exc:
                raise StoreError("Failed to load messages") from exc

    def subscribe_messages(self, listener: Listener) -> Subscription:
        with self._lock:
            snapshot = self.list_messages()
            subscription = self._hub.subscribe(MESSAGES_CHANNEL, listener)
            changes = tuple(MessageChange(type=ChangeType.ADDED, message=message) for message in snapshot)
            self._hub.deliver(subscription, FeedUpdate(messages=tuple(snapshot), changes=changes))
        return subscription

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------
    def _select_profiles(self, db: Session) -> list[Profile]:
        rows = db.scalars(select(ChatProfile).order_by(ChatProfile.identity.asc()))
        return [_to_profile(row) for row in rows]

    def upsert_profile(self, identity: str, update: ProfileUpdate) -> Profile:
        fields = update.model_dump(exclude_unset=True)
        with self._lock:
            with self._session_factory() as db:
                try:
                    row = db.get(ChatProfile, identity)
                    change_type = ChangeType.MODIFIED
                    if row is None:
                        row = ChatProfile(identity=identity)
                        db.add(row)
                        change_type = ChangeType.ADDED
                    for key, value in fields.items():
                        setattr(row, key, value)
                    db.commit()
                except SQLAlchemyError as exc:
                    db.rollback()
                    raise SubmissionError("Failed to store profile") from exc

                profile = _to_profile(row)
                try:
                    snapshot = self._select_profiles(db)
                except SQLAlchemyError as exc:
                    logger.exception("Profile snapshot query failed after upsert")
                    self._hub.fail(PROFILES_CHANNEL, exc)
                    return profile

            change = ProfileChange(type=change_type, profile=profile)
            self._hub.publish(PROFILES_CHANNEL, ProfilesUpdate(profiles=tuple(snapshot), changes=(change,)))
        return profile

    def get_profile(self, identity: str) -> Profile | None:
        with self._session_factory() as db:
            try:
                row = db.get(ChatProfile, identity)
            except SQLAlchemyError as exc:
                raise StoreError("Failed to load profile") from exc
            return _to_profile(row) if row is not None else None

    def list_profiles(self) -> list[Profile]:
        with self._session_factory() as db:
            try:
                return self._select_profiles(db)
            except SQLAlchemyError as exc:
                raise StoreError("Failed to load profiles") from exc

    def subscribe_profiles(self, listener: Listener) -> Subscription:
        with self._lock:
            snapshot = self.list_profiles()
            subscription = self._hub.subscribe(PROFILES_CHANNEL, listener)
            changes = tuple(ProfileChange(type=ChangeType.ADDED, profile=profile) for profile in snapshot)
            self._hub.deliver(subscription, ProfilesUpdate(profiles=tuple(snapshot), changes=changes))
        return subscription


@lru_cache()
def get_remote_store() -> SqlRemoteStore:
    """Process-wide store bound to the configured database."""
    return SqlRemoteStore(SessionLocal)


__all__ = [
    "RemoteStore",
    "SqlRemoteStore",
    "StoreError",
    "SubmissionError",
    "get_remote_store",
]
