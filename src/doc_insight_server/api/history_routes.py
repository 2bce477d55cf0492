"""
History Routes

Read-only access to the caller's query history. All routes require a verified
identity; entries are written only by the insight service.

- ``GET /history``: entries, newest first.
- ``GET /history/suggestions``: distinct past questions, for input
  suggestions.
- ``GET /history/stream``: Server-Sent Events; one ``data:`` line carrying the
  full snapshot as JSON, then another after every change, until the client
  disconnects.
"""

import logging
from typing import Annotated, AsyncIterator

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from .models import HistoryEntryOut, HistoryResponse, SuggestionsResponse
from ..auth.models import UserContext
from ..auth.security import require_identity
from ..history.cache import HistoryCache
from ..history.store import Snapshot
from .dependencies import get_history_cache

logger = logging.getLogger("docinsight.history")

router = APIRouter(prefix="/history", tags=["history"])


def _to_response(snapshot: Snapshot) -> HistoryResponse:
    return HistoryResponse(entries=[HistoryEntryOut.from_entry(e) for e in snapshot])


@router.get(
    "",
    response_model=HistoryResponse,
    summary="List the caller's past queries",
    status_code=status.HTTP_200_OK,
)
async def list_history(
    user: Annotated[UserContext, Depends(require_identity)],
    cache: Annotated[HistoryCache, Depends(get_history_cache)],
) -> HistoryResponse:
    entries = await cache.refresh(user.owner_id)
    return _to_response(entries)


@router.get(
    "/suggestions",
    response_model=SuggestionsResponse,
    summary="Distinct past questions for input suggestions",
    status_code=status.HTTP_200_OK,
)
async def history_suggestions(
    user: Annotated[UserContext, Depends(require_identity)],
    cache: Annotated[HistoryCache, Depends(get_history_cache)],
) -> SuggestionsResponse:
    await cache.refresh(user.owner_id)
    return SuggestionsResponse(suggestions=sorted(cache.suggestions()))


@router.get(
    "/stream",
    summary="Live history snapshots as Server-Sent Events",
    response_class=StreamingResponse,
)
async def stream_history(
    user: Annotated[UserContext, Depends(require_identity)],
    cache: Annotated[HistoryCache, Depends(get_history_cache)],
) -> StreamingResponse:
    async def events() -> AsyncIterator[str]:
        async with cache.observe(user.owner_id) as subscription:
            async for snapshot in subscription:
                yield f"data: {_to_response(snapshot).model_dump_json()}\n\n"
        logger.debug("History stream closed for %s", user.owner_id)

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
