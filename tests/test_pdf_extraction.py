import pytest

from doc_insight_server.core.errors import ExtractionError
from doc_insight_server.extraction.pdf import (
    ExtractedText,
    Page,
    extract_text,
    extract_text_async,
)


def test_single_page_text_has_marker(build_pdf):
    result = extract_text(build_pdf("Hello world"))

    assert result.page_count == 1
    assert result.text == "\n--- Page 1 ---\nHello world"


def test_pages_in_ascending_order(build_pdf):
    result = extract_text(build_pdf("alpha", "beta", "gamma"))

    assert [p.index for p in result.pages] == [1, 2, 3]
    text = result.text
    assert text.index("--- Page 1 ---") < text.index("alpha") < text.index("--- Page 2 ---")
    assert text.index("beta") < text.index("--- Page 3 ---") < text.index("gamma")


def test_blank_page_keeps_its_marker(build_pdf):
    result = extract_text(build_pdf("first", None, "third"))

    assert result.page_count == 3
    assert result.text.count("--- Page ") == 3
    assert "\n--- Page 2 ---\n\n--- Page 3 ---" in result.text


def test_words_joined_by_single_space(build_pdf):
    result = extract_text(build_pdf("Revenue   grew  12%"))

    assert result.pages[0].text == "Revenue grew 12%"


def test_empty_bytes_rejected():
    with pytest.raises(ExtractionError):
        extract_text(b"")


def test_garbage_bytes_rejected():
    with pytest.raises(ExtractionError):
        extract_text(b"this is not a pdf at all")


def test_scanned_pdf_without_text_rejected(build_pdf):
    with pytest.raises(ExtractionError):
        extract_text(build_pdf(None, None))


def test_extraction_error_hint_mentions_scanned_pdf():
    assert "scanned PDF" in ExtractionError.hint


def test_str_is_marked_text():
    extracted = ExtractedText(pages=(Page(index=1, text="a"), Page(index=2, text="b")))
    assert str(extracted) == "\n--- Page 1 ---\na\n--- Page 2 ---\nb"


async def test_async_extraction_matches_sync(build_pdf):
    data = build_pdf("one", "two")
    assert (await extract_text_async(data)).text == extract_text(data).text
