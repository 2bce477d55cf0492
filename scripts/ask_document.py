import argparse
import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from doc_insight_server.config import settings
from doc_insight_server.core.errors import DocInsightError, ExtractionError
from doc_insight_server.extraction.pdf import extract_text_async
from doc_insight_server.insight.composer import Mode, PromptComposer, QueryRequest
from doc_insight_server.insight.service import InsightService
from doc_insight_server.llm.client import GeminiClient
from doc_insight_server.llm.retry import ResilientRequestClient


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Ask a question about a PDF or text file, or extract structured insights."
    )
    parser.add_argument("document", nargs="?", help="PDF or plain-text file")
    parser.add_argument("-q", "--question", default="", help="Question to ask")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Structured extraction (key metrics, action items, sentiment, summary)",
    )
    parser.add_argument(
        "--extract-only",
        action="store_true",
        help="Print the extracted document text and exit",
    )
    return parser.parse_args(argv)


async def load_document(path):
    with open(path, "rb") as fh:
        data = fh.read()
    if path.lower().endswith(".pdf"):
        extracted = await extract_text_async(data)
        print(f"Extracted {extracted.page_count} page(s) from {path}", file=sys.stderr)
        return extracted.text
    return data.decode("utf-8")


async def main(argv=None):
    args = parse_args(argv)

    document_text = ""
    if args.document:
        try:
            document_text = await load_document(args.document)
        except ExtractionError:
            print(ExtractionError.hint, file=sys.stderr)
            return 1

    if args.extract_only:
        print(document_text)
        return 0

    if not settings.gemini_api_key.get_secret_value():
        print("GEMINI_API_KEY is not set.", file=sys.stderr)
        return 2

    request_client = ResilientRequestClient(
        max_attempts=settings.max_retry_attempts,
        base_delay=settings.retry_base_delay,
        jitter=settings.retry_jitter,
        timeout=settings.request_timeout,
        headers={"x-goog-api-key": settings.gemini_api_key.get_secret_value()},
    )
    service = InsightService(
        PromptComposer(max_context_chars=settings.max_context_chars),
        GeminiClient(request_client, endpoint_url=settings.generate_content_url),
    )

    query = QueryRequest(
        document_text=document_text,
        question=args.question,
        mode=Mode.EXTRACT if args.json else Mode.QA,
    )

    try:
        result = await service.query(query)
    except DocInsightError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await request_client.aclose()

    print(result.content)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
