import pytest

from doc_insight_server import prompts
from doc_insight_server.core.errors import ValidationError
from doc_insight_server.insight.composer import (
    Mode,
    OutputContract,
    PromptComposer,
    QueryRequest,
)


@pytest.fixture
def composer():
    return PromptComposer(max_context_chars=1_000)


def test_extract_mode_uses_extraction_engine(composer):
    bundle = composer.compose(
        QueryRequest(document_text="Revenue: $10M", question="finance", mode=Mode.EXTRACT)
    )

    assert bundle.system_instruction == prompts.EXTRACTION_SYSTEM_PROMPT
    assert bundle.output_contract is OutputContract.STRICT_JSON
    assert bundle.user_message == (
        "DOCUMENT CONTENT:\n\n---\nRevenue: $10M\n---\n\n"
        "Context/Focus Area (Optional): finance"
    )


def test_extract_mode_without_document_still_strict_json(composer):
    bundle = composer.compose(QueryRequest(question="anything", mode=Mode.EXTRACT))

    assert bundle.output_contract is OutputContract.STRICT_JSON
    assert bundle.user_message == "Context/Focus Area (Optional): anything"


def test_qa_with_document_is_grounded(composer):
    bundle = composer.compose(QueryRequest(document_text="Body", question="Why?"))

    assert bundle.system_instruction == prompts.DOCUMENT_QA_SYSTEM_PROMPT
    assert bundle.output_contract is OutputContract.FREE_TEXT
    assert bundle.user_message == "DOCUMENT CONTENT:\n\n---\nBody\n---\n\nUSER QUESTION: Why?"


def test_qa_without_document_is_general(composer):
    bundle = composer.compose(QueryRequest(question="What is 2+2?"))

    assert bundle.system_instruction == prompts.GENERAL_QA_SYSTEM_PROMPT
    assert bundle.output_contract is OutputContract.FREE_TEXT
    assert bundle.user_message == "USER QUESTION: What is 2+2?"


def test_whitespace_document_counts_as_absent(composer):
    bundle = composer.compose(QueryRequest(document_text="  \n ", question="hi"))

    assert bundle.system_instruction == prompts.GENERAL_QA_SYSTEM_PROMPT
    assert "DOCUMENT CONTENT" not in bundle.user_message


def test_document_without_question_omits_question_line(composer):
    bundle = composer.compose(QueryRequest(document_text="Body"))

    assert bundle.user_message == "DOCUMENT CONTENT:\n\n---\nBody\n---"


def test_question_embedded_as_typed(composer):
    bundle = composer.compose(QueryRequest(question="  spaced out \n"))

    assert bundle.user_message == "USER QUESTION:   spaced out \n"


def test_compose_is_pure(composer):
    request = QueryRequest(document_text="Body", question="Q")

    assert composer.compose(request) == composer.compose(request)


def test_document_at_limit_accepted(composer):
    composer.compose(QueryRequest(document_text="x" * 1_000))


def test_document_over_limit_rejected(composer):
    with pytest.raises(ValidationError) as excinfo:
        composer.compose(QueryRequest(document_text="x" * 1_001, question="Q"))

    assert "too long" in str(excinfo.value)


def test_request_emptiness():
    assert QueryRequest().is_empty
    assert QueryRequest(document_text=" ", question="\t").is_empty
    assert not QueryRequest(question="Q").is_empty
    assert not QueryRequest(document_text="D").is_empty


def test_invalid_budget():
    with pytest.raises(ValueError):
        PromptComposer(max_context_chars=0)
