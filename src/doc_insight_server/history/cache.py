"""
History Cache

Read-only projection of a caller's query history, used to drive question
suggestions. The cache never writes: entries reach the store only through
the insight service.

``observe()`` returns a HistorySubscription, an async iterator of snapshots
that also keeps the cache's latest snapshot current. ``suggestions()`` derives
the distinct, non-blank questions from that latest snapshot. Snapshots can lag
behind a just-finished query; callers must tolerate eventually consistent
suggestions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Iterable, List, Optional, Set

from .models import HistoryEntry
from .store import HistoryStore, Snapshot

logger = logging.getLogger("docinsight.history")


def distinct_questions(entries: Iterable[HistoryEntry]) -> Set[str]:
    """Distinct questions with surrounding whitespace removed; blanks dropped."""
    return {entry.question.strip() for entry in entries if entry.question.strip()}


class HistorySubscription:
    """
    Cancellable stream of history snapshots for one owner.

    Use as an async iterator, optionally inside ``async with`` so the
    underlying store subscription is released on exit.
    """

    def __init__(self, cache: "HistoryCache", owner_id: str) -> None:
        self._cache = cache
        self.owner_id = owner_id
        self._source: AsyncGenerator[Snapshot, None] = cache.store.subscribe(owner_id)
        self._closed = asyncio.Event()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __aiter__(self) -> "HistorySubscription":
        return self

    async def __anext__(self) -> Snapshot:
        if self._cancelled:
            raise StopAsyncIteration

        # A cancel() from another task must wake a consumer blocked on the store
        next_snapshot = asyncio.ensure_future(self._source.__anext__())
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {next_snapshot, closed},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            closed.cancel()
            if not next_snapshot.done():
                next_snapshot.cancel()

        if next_snapshot not in done:
            raise StopAsyncIteration

        snapshot = next_snapshot.result()
        self._cache._update(self.owner_id, snapshot)
        return list(snapshot)

    async def cancel(self) -> None:
        """Stop delivery and close the store subscription. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        self._closed.set()
        if not self._source.ag_running:
            await self._source.aclose()

    async def __aenter__(self) -> "HistorySubscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.cancel()


class HistoryCache:
    """Latest observed history snapshot plus the suggestions derived from it."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self._owner_id: Optional[str] = None
        self._latest: List[HistoryEntry] = []

    def observe(self, owner_id: str) -> HistorySubscription:
        """
        Subscribe to ``owner_id``'s history.

        Observing a different owner resets the cached snapshot. Each call
        returns a fresh subscription that starts with the current snapshot.
        """
        if owner_id != self._owner_id:
            self._owner_id = owner_id
            self._latest = []
        return HistorySubscription(self, owner_id)

    def _update(self, owner_id: str, snapshot: Snapshot) -> None:
        if owner_id != self._owner_id:
            logger.debug("Ignoring snapshot for stale owner %s", owner_id)
            return
        self._latest = list(snapshot)

    async def refresh(self, owner_id: str) -> List[HistoryEntry]:
        """Read the owner's current entries once, without subscribing."""
        self._owner_id = owner_id
        self._latest = await self.store.list_entries(owner_id)
        return list(self._latest)

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._latest)

    def suggestions(self) -> Set[str]:
        return distinct_questions(self._latest)
