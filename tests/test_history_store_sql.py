import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from doc_insight_server.db import build_engine, build_sessionmaker, create_tables
from doc_insight_server.history.models import HistoryEntry
from doc_insight_server.history.store import SqlHistoryStore


def entry(question, owner="alice", minutes=0):
    created = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return HistoryEntry(question=question, answer="A", owner_id=owner, created_at=created)


@pytest.fixture
async def sql_store(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/history.db")
    await create_tables(engine)
    yield SqlHistoryStore(build_sessionmaker(engine), poll_interval=0.01)
    await engine.dispose()


async def test_entries_newest_first(sql_store):
    await sql_store.append(entry("old", minutes=0))
    await sql_store.append(entry("new", minutes=10))
    await sql_store.append(entry("middle", minutes=5))

    entries = await sql_store.list_entries("alice")

    assert [e.question for e in entries] == ["new", "middle", "old"]


async def test_entries_scoped_to_owner(sql_store):
    await sql_store.append(entry("mine", owner="alice"))
    await sql_store.append(entry("theirs", owner="bob"))

    entries = await sql_store.list_entries("alice")

    assert [e.owner_id for e in entries] == ["alice"]
    assert await sql_store.list_entries("carol") == []


async def test_timestamps_round_trip_as_utc(sql_store):
    original = entry("q", minutes=3)
    await sql_store.append(original)

    (stored,) = await sql_store.list_entries("alice")

    assert stored.created_at.tzinfo is not None
    assert stored.created_at == original.created_at
    assert stored == original


async def test_subscribe_emits_only_on_change(sql_store):
    await sql_store.append(entry("first"))
    subscription = sql_store.subscribe("alice")

    initial = await subscription.__anext__()
    assert [e.question for e in initial] == ["first"]

    await sql_store.append(entry("second", minutes=1))
    updated = await asyncio.wait_for(subscription.__anext__(), timeout=2)

    assert [e.question for e in updated] == ["second", "first"]
    await subscription.aclose()
