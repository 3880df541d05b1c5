"""Shared fixtures for the chat sync test-suite."""
from __future__ import annotations

import os
from datetime import datetime, timedelta
from typing import Callable, Iterator

import pytest

# Point the module-level engine at a throwaway database before chatsync is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_chatsync.db")
os.environ.setdefault("CACHE_DIR", "./.test_chatsync_cache")

from chatsync.database import build_engine, init_db, make_session_factory  # noqa: E402
from chatsync.schemas import IdentityContext  # noqa: E402
from chatsync.services import LocalCacheStore, MemoryKeyValueStore, SqlRemoteStore  # noqa: E402
from factories import BASE_TIME, ME, RecordingNotifier  # noqa: E402


@pytest.fixture
def identity() -> IdentityContext:
    return IdentityContext(identity=ME, display_name="Me")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def cache(kv: MemoryKeyValueStore) -> LocalCacheStore:
    return LocalCacheStore(kv)


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    ticks = iter(range(10_000))

    def _now() -> datetime:
        return BASE_TIME + timedelta(seconds=next(ticks))

    return _now


@pytest.fixture
def store(session_factory, clock) -> Iterator[SqlRemoteStore]:
    yield SqlRemoteStore(session_factory, clock=clock)
