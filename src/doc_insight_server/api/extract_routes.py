"""
Extraction Routes

Accepts raw PDF bytes and returns the page-marked text the client later sends
back as ``documentText``. Parsing runs in a worker thread.
"""

from fastapi import APIRouter, HTTPException, Request, status

from .models import ExtractResponse
from ..config import settings
from ..extraction.pdf import extract_text_async

router = APIRouter(tags=["extract"])


@router.post(
    "/extract",
    response_model=ExtractResponse,
    summary="Extract text from an uploaded PDF",
    status_code=status.HTTP_200_OK,
)
async def extract(request: Request) -> ExtractResponse:
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Uploaded file is too large.",
        )

    body = await request.body()
    if len(body) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Uploaded file is too large.",
        )

    # ExtractionError is mapped to 422 by the application's handlers
    extracted = await extract_text_async(body)

    return ExtractResponse(documentText=extracted.text, pageCount=extracted.page_count)
