"""Local cache store: fail-soft loads, best-effort saves, stable bytes."""
from __future__ import annotations

import logging

import pytest

from chatsync.schemas import LocalProfile
from chatsync.services import CacheError, JsonFileKeyValueStore, LocalCacheStore, MemoryKeyValueStore
from factories import OTHER, make_message


def test_empty_cache_loads_as_empty_list(cache):
    assert cache.load_messages() == []
    assert cache.load_profile() is None


def test_corrupt_cache_fails_soft(kv, cache, caplog):
    kv.set("chat_history", "{not json")
    caplog.set_level(logging.ERROR)

    assert cache.load_messages() == []
    assert "Failed to load cached messages" in caplog.text


def test_wrong_shape_fails_soft(kv, cache):
    kv.set("chat_history", '{"id": "1"}')

    assert cache.load_messages() == []


def test_read_errors_fail_soft():
    class _Broken(MemoryKeyValueStore):
        def get(self, key: str) -> str | None:
            raise PermissionError("locked")

    cache = LocalCacheStore(_Broken())

    assert cache.load_messages() == []
    assert cache.load_profile() is None


def test_save_then_load_preserves_order_and_fields(cache):
    messages = [
        make_message("1", text="hi", minutes=1),
        make_message("2", sender_id=OTHER, image_data="data:image/png;base64,AAAA", sender_color="#FF5733", minutes=2),
        make_message("3", text="pending", minutes=None),
    ]

    cache.save_messages(messages)

    assert cache.load_messages() == messages


def test_load_then_save_is_byte_identical(kv, cache):
    cache.save_messages([make_message("1", text="héllo", minutes=1), make_message("2", minutes=None)])
    before = kv.get("chat_history")

    cache.save_messages(cache.load_messages())

    assert kv.get("chat_history") == before


def test_profile_snapshot_round_trip(kv, cache):
    profile = LocalProfile(display_name="Mika", theme_color="#3357FF", photo_data=None)

    cache.save_profile(profile)

    assert cache.load_profile() == profile
    assert "identity" not in kv.get("my_profile")


def test_custom_keys_are_used():
    kv = MemoryKeyValueStore()
    cache = LocalCacheStore(kv, history_key="room-1", profile_key="me")

    cache.save_messages([make_message("1")])
    cache.save_profile(LocalProfile(display_name="A"))

    assert kv.get("room-1") is not None
    assert kv.get("me") is not None
    assert kv.get("chat_history") is None


def test_file_store_round_trip(tmp_path):
    backend = JsonFileKeyValueStore(tmp_path / "cache")
    cache = LocalCacheStore(backend)

    cache.save_messages([make_message("1", text="offline copy")])

    assert (tmp_path / "cache" / "chat_history.json").exists()
    assert not list((tmp_path / "cache").glob("*.tmp"))
    assert [message.text for message in LocalCacheStore(backend).load_messages()] == ["offline copy"]


def test_file_store_missing_key_is_none(tmp_path):
    assert JsonFileKeyValueStore(tmp_path).get("absent") is None


def test_file_store_write_failure_is_logged(tmp_path, caplog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    cache = LocalCacheStore(JsonFileKeyValueStore(blocker))
    caplog.set_level(logging.ERROR)

    cache.save_messages([make_message("1")])

    assert "Failed to persist cached messages" in caplog.text


def test_file_store_raises_cache_error_on_unwritable_directory(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(CacheError):
        JsonFileKeyValueStore(blocker).set("chat_history", "[]")
