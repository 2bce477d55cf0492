"""
Summarize Routes

The main query endpoint used by the browser client. A request carries
document text, a question, or both:

- ``responseFormat="text"``: question answering (grounded in the document
  when one is supplied, general otherwise).
- ``responseFormat="json"``: structured extraction; ``summary`` then holds a
  JSON document serialized as a string.

Identity is optional. When a valid bearer token is presented, the successful
query is recorded in the caller's history.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status

from .models import SummarizeRequest, SummarizeResponse
from ..auth.models import UserContext
from ..auth.security import get_optional_identity
from ..insight.composer import Mode, QueryRequest
from ..insight.service import InsightService
from .dependencies import get_insight_service

router = APIRouter(tags=["summarize"])

_MODES = {"text": Mode.QA, "json": Mode.EXTRACT}


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    summary="Answer a question or extract insights from document text",
    status_code=status.HTTP_200_OK,
)
async def summarize(
    req: SummarizeRequest,
    user: Annotated[Optional[UserContext], Depends(get_optional_identity)],
    service: Annotated[InsightService, Depends(get_insight_service)],
) -> SummarizeResponse:
    """
    Run one insight query.

    Errors are mapped by the application's exception handlers:
    blank or oversized input -> 400, upstream failure -> 502.
    """
    query = QueryRequest(
        document_text=req.documentText,
        question=req.question,
        mode=_MODES[req.responseFormat],
    )

    result = await service.query(
        query,
        owner_id=user.owner_id if user is not None else None,
    )

    return SummarizeResponse(summary=result.content)
