import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from doc_insight_server.history.cache import HistoryCache, distinct_questions
from doc_insight_server.history.models import HistoryEntry


def entry(question, owner="alice", minutes=0, answer="A"):
    created = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return HistoryEntry(question=question, answer=answer, owner_id=owner, created_at=created)


def test_distinct_questions_strips_and_drops_blanks():
    entries = [entry(" revenue? "), entry("revenue?"), entry(""), entry("   "), entry("risks")]

    assert distinct_questions(entries) == {"revenue?", "risks"}


async def test_store_orders_newest_first(history_store):
    await history_store.append(entry("old", minutes=0))
    await history_store.append(entry("new", minutes=5))
    await history_store.append(entry("middle", minutes=2))

    entries = await history_store.list_entries("alice")

    assert [e.question for e in entries] == ["new", "middle", "old"]


def test_store_exposes_no_removal_operations(history_store):
    public = {name for name in dir(history_store) if not name.startswith("_")}

    assert public == {"append", "list_entries", "subscribe", "subscriber_count"}


async def test_store_scopes_by_owner(history_store):
    await history_store.append(entry("mine", owner="alice"))
    await history_store.append(entry("theirs", owner="bob"))

    assert [e.question for e in await history_store.list_entries("alice")] == ["mine"]
    assert [e.question for e in await history_store.list_entries("bob")] == ["theirs"]


async def test_refresh_populates_suggestions(history_store):
    await history_store.append(entry("What changed?"))
    await history_store.append(entry("What changed?  ", minutes=1))
    await history_store.append(entry("", minutes=2))
    cache = HistoryCache(history_store)

    await cache.refresh("alice")

    assert cache.suggestions() == {"What changed?"}
    assert len(cache.entries) == 3


async def test_observe_yields_initial_then_updates(history_store):
    await history_store.append(entry("first"))
    cache = HistoryCache(history_store)

    async with cache.observe("alice") as subscription:
        initial = await subscription.__anext__()
        assert [e.question for e in initial] == ["first"]

        await history_store.append(entry("second", minutes=1))
        updated = await asyncio.wait_for(subscription.__anext__(), timeout=1)

    assert [e.question for e in updated] == ["second", "first"]
    assert cache.suggestions() == {"first", "second"}
    assert history_store.subscriber_count("alice") == 0


async def test_other_owner_changes_not_delivered(history_store):
    cache = HistoryCache(history_store)

    async with cache.observe("alice") as subscription:
        await subscription.__anext__()
        await history_store.append(entry("theirs", owner="bob"))

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(subscription.__anext__(), timeout=0.05)

    assert cache.suggestions() == set()


async def test_observing_new_owner_resets_snapshot(history_store):
    await history_store.append(entry("alice question", owner="alice"))
    cache = HistoryCache(history_store)
    await cache.refresh("alice")
    assert cache.suggestions() == {"alice question"}

    subscription = cache.observe("bob")

    assert cache.suggestions() == set()
    await subscription.cancel()


async def test_cancel_wakes_blocked_consumer(history_store):
    cache = HistoryCache(history_store)
    subscription = cache.observe("alice")
    await subscription.__anext__()

    received = []

    async def consume():
        async for snapshot in subscription:
            received.append(snapshot)

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(0)
    await subscription.cancel()
    await asyncio.wait_for(consumer, timeout=1)

    assert received == []
    assert subscription.cancelled


async def test_cancel_is_idempotent(history_store):
    subscription = HistoryCache(history_store).observe("alice")
    await subscription.__anext__()

    await subscription.cancel()
    await subscription.cancel()

    with pytest.raises(StopAsyncIteration):
        await subscription.__anext__()


async def test_stale_subscription_does_not_overwrite_new_owner(history_store):
    await history_store.append(entry("alice question", owner="alice"))
    cache = HistoryCache(history_store)
    alice = cache.observe("alice")
    bob = cache.observe("bob")

    await alice.__anext__()

    assert cache.suggestions() == set()
    await alice.cancel()
    await bob.cancel()
