"""
PDF Text Extraction

Converts a paginated PDF into a single ordered text blob with one marker line
per page. Words on a page are joined with single spaces; line and layout
structure is not reconstructed. This is enough for language-model
consumption, not for faithful reproduction.

Pages are decoded sequentially in index order. A page with no text still
contributes its marker, so the number of markers always equals the page count.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Tuple

import fitz

from ..core.errors import ExtractionError

logger = logging.getLogger("docinsight.extraction")

PAGE_MARKER = "--- Page {index} ---"


@dataclass(frozen=True)
class Page:
    index: int  # 1-based
    text: str


@dataclass(frozen=True)
class ExtractedText:
    pages: Tuple[Page, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def text(self) -> str:
        return "".join(
            f"\n{PAGE_MARKER.format(index=page.index)}\n{page.text}"
            for page in self.pages
        )

    def __str__(self) -> str:
        return self.text


def _page_text(page: "fitz.Page") -> str:
    # Word tuples: (x0, y0, x1, y1, word, block_no, line_no, word_no)
    words = page.get_text("words", sort=True)
    return " ".join(word[4] for word in words)


def extract_text(document_bytes: bytes) -> ExtractedText:
    """
    Extract the text layer of a PDF.

    Parameters
    ----------
    document_bytes : bytes
        Raw PDF file content.

    Returns
    -------
    ExtractedText
        All pages in ascending index order, starting at 1.

    Raises
    ------
    ExtractionError
        If the bytes are not a readable PDF, the PDF has no pages, or no page
        has an extractable text layer (typically a scanned document).
    """
    if not document_bytes:
        raise ExtractionError("Empty document.")

    try:
        doc = fitz.open(stream=document_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise ExtractionError(f"Unreadable PDF: {exc}") from exc

    with doc:
        if doc.needs_pass:
            raise ExtractionError("PDF is password protected.")
        if doc.page_count == 0:
            raise ExtractionError("PDF has no pages.")

        pages: List[Page] = []
        for index, page in enumerate(doc, start=1):
            pages.append(Page(index=index, text=_page_text(page)))

    if not any(page.text.strip() for page in pages):
        raise ExtractionError(
            f"No extractable text in {len(pages)} page(s); the PDF may be a scanned image."
        )

    logger.debug("Extracted %d page(s)", len(pages))
    return ExtractedText(pages=tuple(pages))


async def extract_text_async(document_bytes: bytes) -> ExtractedText:
    """Run ``extract_text`` in a worker thread."""
    return await asyncio.to_thread(extract_text, document_bytes)
