import json

import httpx
import pytest

from doc_insight_server.insight.composer import (
    Mode,
    OutputContract,
    PromptComposer,
    QueryRequest,
)
from doc_insight_server.llm.client import GeminiClient
from doc_insight_server.llm.retry import ResilientRequestClient

ENDPOINT = "https://inference.test/v1beta/models/test-model:generateContent"


def candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def captured():
    return []


def make_gemini(captured, body):
    def handler(request):
        captured.append(json.loads(request.content))
        return httpx.Response(200, json=body)

    request_client = ResilientRequestClient(transport=httpx.MockTransport(handler))
    return GeminiClient(request_client, endpoint_url=ENDPOINT)


def test_payload_for_free_text():
    bundle = PromptComposer().compose(QueryRequest(question="Hi"))

    payload = GeminiClient.build_payload(bundle)

    assert payload["contents"] == [{"parts": [{"text": "USER QUESTION: Hi"}]}]
    assert payload["systemInstruction"] == {"parts": [{"text": bundle.system_instruction}]}
    assert "responseMimeType" not in payload["generationConfig"]


def test_payload_for_structured_extraction():
    bundle = PromptComposer().compose(QueryRequest(document_text="Doc", mode=Mode.EXTRACT))

    payload = GeminiClient.build_payload(bundle)

    assert bundle.output_contract is OutputContract.STRICT_JSON
    assert payload["generationConfig"]["responseMimeType"] == "application/json"


async def test_generate_returns_first_candidate_text(captured):
    gemini = make_gemini(captured, candidate("The answer"))

    text = await gemini.generate(PromptComposer().compose(QueryRequest(question="Q")))

    assert text == "The answer"
    assert captured[0]["contents"][0]["parts"][0]["text"] == "USER QUESTION: Q"
    await gemini.request_client.aclose()


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
        candidate(""),
        candidate(None),
        [],
    ],
)
def test_extract_text_missing_or_empty(body):
    assert GeminiClient.extract_text(body) is None
