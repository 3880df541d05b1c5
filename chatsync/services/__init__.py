"""Convenience exports for service layer."""
from .cache_store import CacheError, JsonFileKeyValueStore, KeyValueStore, LocalCacheStore, MemoryKeyValueStore
from .chat_session import ChatSession, build_session
from .events import FeedUpdate, ProfilesUpdate, SubscriptionFailure
from .message_composer import MessageComposer
from .message_feed import MessageFeedSubscriber
from .notifier import LoggingNotifier, NotificationType, Notifier
from .presentation import fallback_name, join_messages, resolve_sender
from .profile_directory import ProfileDirectory
from .profile_service import ProfileService, ProfileValidationError, validate_display_name, validate_theme_color
from .remote_store import RemoteStore, SqlRemoteStore, StoreError, SubmissionError, get_remote_store
from .subscriptions import Subscription, SubscriptionHub
from .sync_reconciler import SyncReconciler, SyncState

__all__ = [
    "CacheError",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LocalCacheStore",
    "MemoryKeyValueStore",
    "ChatSession",
    "build_session",
    "FeedUpdate",
    "ProfilesUpdate",
    "SubscriptionFailure",
    "MessageComposer",
    "MessageFeedSubscriber",
    "LoggingNotifier",
    "NotificationType",
    "Notifier",
    "fallback_name",
    "join_messages",
    "resolve_sender",
    "ProfileDirectory",
    "ProfileService",
    "ProfileValidationError",
    "validate_display_name",
    "validate_theme_color",
    "RemoteStore",
    "SqlRemoteStore",
    "StoreError",
    "SubmissionError",
    "get_remote_store",
    "Subscription",
    "SubscriptionHub",
    "SyncReconciler",
    "SyncState",
]
