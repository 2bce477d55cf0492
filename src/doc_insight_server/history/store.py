"""
History Store

Append-only storage for HistoryEntry records, scoped by owner identity, with
ordered reads and live subscriptions.

Two implementations share the same interface:

- ``InMemoryHistoryStore``: process-local, pushes a new snapshot to every
  subscriber of an owner as soon as an entry is appended. Used for tests and
  single-process deployments without a database.
- ``SqlHistoryStore``: SQLAlchemy async backend. Each operation opens its own
  session. Subscriptions poll the table and emit a snapshot only when the
  owner's entries changed.

Snapshots are always the owner's full entry list, newest first. Subscriptions
are async generators: closing the generator (or cancelling the task consuming
it) stops delivery and releases the underlying resources.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from datetime import timezone
from threading import RLock
from typing import AsyncIterator, Dict, List, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db.models import HistoryRecord
from .models import HistoryEntry

logger = logging.getLogger("docinsight.history")

Snapshot = List[HistoryEntry]


class HistoryStore(abc.ABC):
    """Interface required by the insight service and the history cache."""

    @abc.abstractmethod
    async def append(self, entry: HistoryEntry) -> None:
        """Persist ``entry``. Entries are never modified afterwards."""

    @abc.abstractmethod
    async def list_entries(self, owner_id: str) -> Snapshot:
        """Return the owner's entries ordered by created_at, newest first."""

    @abc.abstractmethod
    def subscribe(self, owner_id: str) -> AsyncIterator[Snapshot]:
        """
        Yield the owner's current snapshot, then a new snapshot after every
        change, until closed.
        """


# ---------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------

class InMemoryHistoryStore(HistoryStore):
    """
    Process-local store mapping owner ids to entry lists.

    Copy-on-read: callers never receive the internal lists.
    """

    def __init__(self) -> None:
        self._store: Dict[str, List[HistoryEntry]] = {}
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._lock = RLock()

    def _snapshot(self, owner_id: str) -> Snapshot:
        # Insertion order breaks created_at ties, newest first
        entries = list(reversed(self._store.get(owner_id, [])))
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries

    async def append(self, entry: HistoryEntry) -> None:
        with self._lock:
            self._store.setdefault(entry.owner_id, []).append(entry)
            snapshot = self._snapshot(entry.owner_id)
            queues = list(self._subscribers.get(entry.owner_id, ()))

        for queue in queues:
            queue.put_nowait(list(snapshot))

    async def list_entries(self, owner_id: str) -> Snapshot:
        with self._lock:
            return self._snapshot(owner_id)

    async def subscribe(self, owner_id: str) -> AsyncIterator[Snapshot]:
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers.setdefault(owner_id, set()).add(queue)
            initial = self._snapshot(owner_id)

        try:
            yield initial
            while True:
                yield await queue.get()
        finally:
            with self._lock:
                subscribers = self._subscribers.get(owner_id)
                if subscribers is not None:
                    subscribers.discard(queue)
                    if not subscribers:
                        del self._subscribers[owner_id]

    def subscriber_count(self, owner_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(owner_id, ()))


# ---------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------

def _to_entry(record: HistoryRecord) -> HistoryEntry:
    created_at = record.created_at
    if created_at.tzinfo is None:
        # SQLite drops the offset; values are always written in UTC
        created_at = created_at.replace(tzinfo=timezone.utc)
    return HistoryEntry(
        question=record.question,
        answer=record.answer,
        owner_id=record.owner_id,
        created_at=created_at,
    )


class SqlHistoryStore(HistoryStore):
    """
    Database-backed history store.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory used to open one session per operation.

    poll_interval : float
        Seconds between reads while a subscription is waiting for changes.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        poll_interval: float = 2.0,
    ) -> None:
        self._session_factory = session_factory
        self._poll_interval = poll_interval

    async def append(self, entry: HistoryEntry) -> None:
        async with self._session_factory() as session:
            session.add(
                HistoryRecord(
                    owner_id=entry.owner_id,
                    question=entry.question,
                    answer=entry.answer,
                    created_at=entry.created_at.astimezone(timezone.utc),
                )
            )
            await session.commit()

    async def list_entries(self, owner_id: str) -> Snapshot:
        async with self._session_factory() as session:
            result = await session.execute(
                select(HistoryRecord)
                .where(HistoryRecord.owner_id == owner_id)
                .order_by(HistoryRecord.created_at.desc(), HistoryRecord.id.desc())
            )
            return [_to_entry(record) for record in result.scalars().all()]

    async def subscribe(self, owner_id: str) -> AsyncIterator[Snapshot]:
        previous = None
        while True:
            snapshot = await self.list_entries(owner_id)
            if snapshot != previous:
                previous = snapshot
                yield snapshot
            await asyncio.sleep(self._poll_interval)
