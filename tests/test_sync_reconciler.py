"""Behaviour of the feed/cache reconciler."""
from __future__ import annotations

import itertools
import logging
from datetime import datetime

import pytest

from chatsync.schemas import Profile
from chatsync.services import LocalCacheStore, MemoryKeyValueStore, ProfileDirectory, ProfilesUpdate, SyncReconciler, SyncState
from factories import ME, OTHER, RecordingNotifier, feed_update, initial_update, make_message


@pytest.fixture
def reconciler(identity, cache, notifier) -> SyncReconciler:
    return SyncReconciler(identity, cache, notifier)


def _ids(messages) -> list[str]:
    return [message.id for message in messages]


def test_cold_start_shows_cached_list(cache, reconciler):
    cache.save_messages([make_message("1", text="hi")])

    shown = reconciler.warm_start()

    assert reconciler.state is SyncState.COLD
    assert _ids(shown) == ["1"]


def test_first_snapshot_goes_live_without_notifying(cache, kv, reconciler, notifier):
    first = make_message("1", text="hi", minutes=1)
    second = make_message("2", text="yo", sender_id="other", minutes=2)
    cache.save_messages([first])
    reconciler.warm_start()

    reconciler.apply(initial_update([first, second]))

    assert reconciler.state is SyncState.LIVE
    assert _ids(reconciler.messages) == ["1", "2"]
    assert notifier.vibrations == 0
    assert notifier.toasts == []
    assert _ids(cache.load_messages()) == ["1", "2"]


def test_second_snapshot_notifies_once_per_foreign_addition(reconciler, notifier):
    m1 = make_message("1", text="hi", minutes=1)
    m2 = make_message("2", text="yo", sender_id="other", minutes=2)
    m3 = make_message("3", sender_id="other", minutes=3)
    reconciler.apply(initial_update([m1, m2]))

    reconciler.apply(feed_update([m1, m2, m3], added=[m3]))

    assert notifier.vibrations == 1
    assert notifier.toasts == ["New message from other"]
    assert _ids(reconciler.messages) == ["1", "2", "3"]


def test_every_foreign_message_in_a_batch_gets_its_own_notification(reconciler, notifier):
    reconciler.apply(initial_update([]))
    batch = [make_message(str(i), sender_id=OTHER, minutes=i) for i in range(1, 4)]

    reconciler.apply(feed_update(batch, added=batch))

    assert notifier.vibrations == 3
    assert len(notifier.toasts) == 3


def test_own_messages_and_modifications_never_notify(reconciler, notifier):
    reconciler.apply(initial_update([]))
    mine = make_message("1", sender_id=ME, minutes=1)
    theirs = make_message("2", sender_id=OTHER, minutes=2)

    reconciler.apply(feed_update([mine, theirs], added=[mine], modified=[theirs]))

    assert notifier.vibrations == 0


def test_same_snapshot_twice_is_idempotent(kv, reconciler, notifier):
    m1 = make_message("1", minutes=1)
    m2 = make_message("2", sender_id=OTHER, minutes=2)
    reconciler.apply(initial_update([m1]))
    update = feed_update([m1, m2], added=[m2])

    reconciler.apply(update)
    persisted = kv.get("chat_history")
    reconciler.apply(update)

    assert notifier.vibrations == 1
    assert kv.get("chat_history") == persisted


def test_redelivered_backlog_does_not_renotify(reconciler, notifier):
    backlog = [make_message(str(i), sender_id=OTHER, minutes=i) for i in range(3)]
    reconciler.apply(initial_update(backlog))

    # A transport-level resubscribe replays everything as "added".
    reconciler.apply(initial_update(backlog))

    assert notifier.vibrations == 0


@pytest.mark.parametrize("order", list(itertools.permutations(range(4))))
def test_display_order_is_independent_of_arrival_order(reconciler, order):
    documents = [
        make_message("a", minutes=3),
        make_message("b", minutes=1),
        make_message("pending", minutes=None),
        make_message("c", minutes=2),
    ]
    shuffled = [documents[index] for index in order]

    reconciler.apply(initial_update(shuffled))

    assert _ids(reconciler.messages) == ["b", "c", "a", "pending"]


def test_broken_update_keeps_previous_state(kv, reconciler, caplog):
    good = make_message("1", minutes=1)
    reconciler.apply(initial_update([good]))
    persisted = kv.get("chat_history")
    naive = make_message("2", minutes=None).model_copy(update={"created_at": datetime(2024, 1, 1)})
    caplog.set_level(logging.ERROR)

    applied = reconciler.apply(initial_update([good, naive]))

    assert applied is False
    assert _ids(reconciler.messages) == ["1"]
    assert kv.get("chat_history") == persisted
    assert "Discarding feed update" in caplog.text


def test_processing_continues_after_a_broken_update(reconciler, notifier):
    good = make_message("1", minutes=1)
    reconciler.apply(initial_update([good]))
    naive = make_message("bad", minutes=None).model_copy(update={"created_at": datetime(2024, 1, 1)})
    reconciler.apply(initial_update([good, naive]))

    fresh = make_message("2", sender_id=OTHER, minutes=2)
    reconciler.apply(feed_update([good, fresh], added=[fresh]))

    assert _ids(reconciler.messages) == ["1", "2"]
    assert notifier.vibrations == 1


def test_cache_load_after_going_live_is_ignored(cache, reconciler):
    reconciler.apply(initial_update([make_message("live", minutes=1)]))
    cache.save_messages([make_message("stale", minutes=0)])

    reconciler.warm_start()

    assert _ids(reconciler.messages) == ["live"]
    assert reconciler.state is SyncState.LIVE


def test_scroll_failure_does_not_block_processing(identity, cache, notifier):
    def _broken_scroll() -> None:
        raise RuntimeError("no list view")

    reconciler = SyncReconciler(identity, cache, notifier, scroll_to_end=_broken_scroll)

    assert reconciler.apply(initial_update([make_message("1")])) is True
    assert reconciler.first_load is False


def test_scroll_requested_after_each_update(identity, cache, notifier):
    calls: list[int] = []
    reconciler = SyncReconciler(identity, cache, notifier, scroll_to_end=lambda: calls.append(len(calls)))

    reconciler.apply(initial_update([]))
    reconciler.apply(initial_update([make_message("1")]))

    assert len(calls) == 2


def test_toast_skipped_where_unsupported(identity, cache):
    quiet = RecordingNotifier(supports_toast=False)
    reconciler = SyncReconciler(identity, cache, quiet)
    reconciler.apply(initial_update([]))
    incoming = make_message("1", sender_id=OTHER, minutes=1)

    reconciler.apply(feed_update([incoming], added=[incoming]))

    assert quiet.vibrations == 1
    assert quiet.toasts == []


def test_notifications_can_be_disabled(identity, cache, notifier):
    reconciler = SyncReconciler(identity, cache, notifier, notifications_enabled=False)
    reconciler.apply(initial_update([]))
    incoming = make_message("1", sender_id=OTHER, minutes=1)

    reconciler.apply(feed_update([incoming], added=[incoming]))

    assert notifier.vibrations == 0
    assert _ids(reconciler.messages) == ["1"]


def test_toast_uses_live_profile_name(identity, cache, notifier, store):
    directory = ProfileDirectory(store)
    directory.apply(ProfilesUpdate(profiles=(Profile(identity=OTHER, display_name="Rina"),)))
    reconciler = SyncReconciler(identity, cache, notifier, directory)
    reconciler.apply(initial_update([]))
    incoming = make_message("1", sender_id=OTHER, sender_name="old name", minutes=1)

    reconciler.apply(feed_update([incoming], added=[incoming]))

    assert notifier.toasts == ["New message from Rina"]


def test_listeners_receive_each_new_list(reconciler):
    seen: list[list[str]] = []
    reconciler.add_listener(lambda messages: seen.append(_ids(messages)))

    reconciler.warm_start()
    reconciler.apply(initial_update([make_message("1")]))

    assert seen == [[], ["1"]]


def test_cache_write_failure_is_not_fatal(identity, notifier, caplog):
    class _ReadOnly(MemoryKeyValueStore):
        def set(self, key: str, value: str) -> None:
            raise OSError("disk full")

    reconciler = SyncReconciler(identity, LocalCacheStore(_ReadOnly()), notifier)
    caplog.set_level(logging.ERROR)

    assert reconciler.apply(initial_update([make_message("1")])) is True
    assert _ids(reconciler.messages) == ["1"]
    assert "Failed to persist cached messages" in caplog.text
