import os

# Settings are read once at import time; configure before the app is imported.
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("JWT_SECRET", "test-secret-identity-must-be-long-enough")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("HISTORY_CREATE_TABLES", "false")

import fitz
import pytest

from doc_insight_server.history.store import InMemoryHistoryStore


def _build_pdf(*page_texts):
    """Build an in-memory PDF with one page per text (None -> blank page)."""
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def build_pdf():
    return _build_pdf
