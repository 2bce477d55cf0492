"""
Insight Service

Orchestrates one document-insight query:

1. Reject requests with neither document text nor a question.
2. Compose the prompt (may reject oversized documents).
3. Call the inference endpoint through the resilient request client.
4. Validate the reply against the output contract.
5. Record the question/answer pair in the history store, in the background.

The service performs no retries of its own; the request client already spent
the full attempt budget before an error reaches this layer. At most one query
per caller session is expected to be in flight; concurrent calls are not
guarded against.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Optional, Set

import httpx

from ..core.errors import (
    InsightError,
    InsightErrorKind,
    RequestError,
    ValidationError,
)
from ..history.models import HistoryEntry
from ..history.store import HistoryStore
from ..llm.client import GeminiClient
from .composer import OutputContract, PromptComposer, QueryRequest

logger = logging.getLogger("docinsight.service")

EMPTY_REQUEST_MESSAGE = "Please upload a PDF, paste text, or ask a question."


@dataclass(frozen=True)
class InsightResult:
    content: str
    output_contract: OutputContract = OutputContract.FREE_TEXT


class InsightService:
    """
    Query pipeline shared by the HTTP API and the command line tool.

    Parameters
    ----------
    composer : PromptComposer
        Builds the prompt and enforces the input budget.

    llm : GeminiClient
        Inference endpoint adapter (owns the retrying request client).

    history_store : Optional[HistoryStore]
        Where successful queries are recorded. None disables history.
    """

    def __init__(
        self,
        composer: PromptComposer,
        llm: GeminiClient,
        history_store: Optional[HistoryStore] = None,
    ) -> None:
        self.composer = composer
        self.llm = llm
        self.history_store = history_store
        self._pending: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def query(
        self,
        request: QueryRequest,
        owner_id: Optional[str] = None,
    ) -> InsightResult:
        """
        Run ``request`` against the inference service.

        Parameters
        ----------
        request : QueryRequest
            Document text, question and mode.

        owner_id : Optional[str]
            Caller identity. When None, nothing is recorded.

        Raises
        ------
        ValidationError
            Empty request or document over the input budget. The inference
            service is not contacted.

        InsightError
            UPSTREAM_FAILURE when the call failed or returned content that
            violates the output contract; EMPTY_UPSTREAM_RESPONSE when the
            reply had no candidate text.
        """
        if request.is_empty:
            raise ValidationError(EMPTY_REQUEST_MESSAGE)

        bundle = self.composer.compose(request)

        try:
            content = await self.llm.generate(bundle)
        except RequestError as exc:
            logger.error("Inference call rejected: %s", exc)
            raise InsightError(InsightErrorKind.UPSTREAM_FAILURE, str(exc)) from exc
        except httpx.HTTPError as exc:
            logger.error("Inference call failed: %s: %s", type(exc).__name__, exc)
            raise InsightError(
                InsightErrorKind.UPSTREAM_FAILURE,
                f"{type(exc).__name__}: {exc}",
            ) from exc
        except ValueError as exc:
            # Reply body was not JSON
            logger.error("Inference reply could not be decoded: %s", exc)
            raise InsightError(InsightErrorKind.UPSTREAM_FAILURE, "undecodable reply") from exc

        if content is None:
            raise InsightError(InsightErrorKind.EMPTY_UPSTREAM_RESPONSE)

        if bundle.output_contract is OutputContract.STRICT_JSON:
            self._check_json(content)

        result = InsightResult(content=content, output_contract=bundle.output_contract)

        if owner_id and self.history_store is not None:
            self._record_history(
                HistoryEntry(question=request.question, answer=content, owner_id=owner_id)
            )

        return result

    async def wait_for_pending(self) -> None:
        """Wait for outstanding history writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_json(content: str) -> None:
        try:
            json.loads(content)
        except json.JSONDecodeError as exc:
            logger.error("Structured reply is not valid JSON: %s", exc)
            raise InsightError(
                InsightErrorKind.UPSTREAM_FAILURE,
                f"structured reply is not valid JSON: {exc}",
            ) from exc

    def _record_history(self, entry: HistoryEntry) -> None:
        task = asyncio.create_task(self._append_history(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _append_history(self, entry: HistoryEntry) -> None:
        try:
            await self.history_store.append(entry)
        except Exception:
            # A lost history record never fails the query
            logger.exception("Failed to record history for owner %s", entry.owner_id)
