"""SQLAlchemy-backed message and profile collections with live fan-out."""
from __future__ import annotations

import logging

import pytest
from sqlalchemy.exc import OperationalError

from chatsync.schemas import ChangeType, MessageCreate, ProfileUpdate
from chatsync.services import FeedUpdate, ProfilesUpdate, SqlRemoteStore, SubmissionError, SubscriptionFailure
from factories import BASE_TIME, ME, OTHER


def _payload(text: str = "hello", sender: str = ME, **extra) -> MessageCreate:
    return MessageCreate(text=text, sender_id=sender, **extra)


def test_add_message_assigns_id_and_server_timestamp(store):
    message = store.add_message(_payload())

    assert message.id
    assert message.created_at == BASE_TIME
    assert message.created_at.tzinfo is not None


def test_timestamps_strictly_increase_even_with_a_stuck_clock(session_factory):
    store = SqlRemoteStore(session_factory, clock=lambda: BASE_TIME)

    stamps = [store.add_message(_payload(str(i))).created_at for i in range(3)]

    assert stamps == sorted(stamps)
    assert len(set(stamps)) == 3


def test_list_messages_is_ascending(store):
    for text in ("one", "two", "three"):
        store.add_message(_payload(text))

    assert [message.text for message in store.list_messages()] == ["one", "two", "three"]


def test_subscribe_delivers_backlog_as_added(store):
    store.add_message(_payload("first"))
    events: list[FeedUpdate] = []

    store.subscribe_messages(events.append)

    assert len(events) == 1
    assert [message.text for message in events[0].messages] == ["first"]
    assert [change.type for change in events[0].changes] == [ChangeType.ADDED]


def test_each_write_delivers_full_snapshot(store):
    events: list[FeedUpdate] = []
    store.subscribe_messages(events.append)

    store.add_message(_payload("a"))
    store.add_message(_payload("b", sender=OTHER))

    latest = events[-1]
    assert [message.text for message in latest.messages] == ["a", "b"]
    assert [message.text for message in latest.added] == ["b"]


def test_closed_subscription_receives_nothing(store):
    events: list[FeedUpdate] = []
    subscription = store.subscribe_messages(events.append)
    subscription.close()
    subscription.close()

    store.add_message(_payload())

    assert len(events) == 1
    assert store.hub.listener_count("messages") == 0


def test_failing_listener_is_dropped_without_affecting_others(store, caplog):
    healthy: list[FeedUpdate] = []
    calls = {"count": 0}

    def _flaky(event) -> None:
        calls["count"] += 1
        if calls["count"] > 1:
            raise RuntimeError("boom")

    store.subscribe_messages(_flaky)
    store.subscribe_messages(healthy.append)
    caplog.set_level(logging.ERROR)

    store.add_message(_payload("x"))
    store.add_message(_payload("y"))

    assert calls["count"] == 2
    assert len(healthy) == 3
    assert "releasing it" in caplog.text


def test_write_failure_raises_submission_error(store, session_factory, monkeypatch):
    def _fail_commit(self) -> None:
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(session_factory.class_, "commit", _fail_commit)

    with pytest.raises(SubmissionError):
        store.add_message(_payload())


def test_hub_failure_reaches_subscribers_and_releases_them(store):
    events = []
    store.subscribe_messages(events.append)

    store.hub.fail("messages", RuntimeError("stream reset"))
    store.add_message(_payload())

    assert isinstance(events[-1], SubscriptionFailure)
    assert len(events) == 2


def test_profile_upsert_merges_fields(store):
    store.upsert_profile(OTHER, ProfileUpdate(display_name="Rina", theme_color="#FF5733"))

    merged = store.upsert_profile(OTHER, ProfileUpdate(photo_data="data:image/png;base64,AA"))

    assert merged.display_name == "Rina"
    assert merged.theme_color == "#FF5733"
    assert merged.photo_data == "data:image/png;base64,AA"
    assert store.get_profile(OTHER) == merged


def test_explicit_null_clears_field(store):
    store.upsert_profile(ME, ProfileUpdate(display_name="Me", photo_data="data:x"))

    cleared = store.upsert_profile(ME, ProfileUpdate(photo_data=None))

    assert cleared.photo_data is None
    assert cleared.display_name == "Me"


def test_profile_subscription_classifies_changes(store):
    events: list[ProfilesUpdate] = []
    store.subscribe_profiles(events.append)

    store.upsert_profile(OTHER, ProfileUpdate(display_name="Rina"))
    store.upsert_profile(OTHER, ProfileUpdate(display_name="Rin"))

    assert [change.type for event in events[1:] for change in event.changes] == [ChangeType.ADDED, ChangeType.MODIFIED]
    assert [profile.display_name for profile in events[-1].profiles] == ["Rin"]


def test_unknown_profile_is_none(store):
    assert store.get_profile("nobody@example.com") is None
