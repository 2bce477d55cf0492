"""
Prompt Composer

Turns a QueryRequest into the system instruction and user message sent to the
inference service.

| mode    | document? | system instruction        | output contract |
|---------|-----------|---------------------------|-----------------|
| EXTRACT | any       | extraction engine         | STRICT_JSON     |
| QA      | yes       | document-grounded answers | FREE_TEXT       |
| QA      | no        | general assistant         | FREE_TEXT       |

Composition is a pure function of the request. Documents longer than the
configured character budget are rejected, never truncated or split.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List

from ..core.errors import ValidationError
from .. import prompts


class Mode(str, enum.Enum):
    QA = "qa"
    EXTRACT = "extract"


class OutputContract(str, enum.Enum):
    FREE_TEXT = "free_text"
    STRICT_JSON = "strict_json"


@dataclass(frozen=True)
class QueryRequest:
    document_text: str = ""
    question: str = ""
    mode: Mode = Mode.QA

    @property
    def has_document(self) -> bool:
        return bool(self.document_text.strip())

    @property
    def has_question(self) -> bool:
        return bool(self.question.strip())

    @property
    def is_empty(self) -> bool:
        return not (self.has_document or self.has_question)


@dataclass(frozen=True)
class PromptBundle:
    system_instruction: str
    user_message: str
    output_contract: OutputContract


class PromptComposer:
    """Builds PromptBundles under a fixed input-length budget."""

    def __init__(self, max_context_chars: int = 400_000) -> None:
        if max_context_chars <= 0:
            raise ValueError(f"max_context_chars must be positive; got {max_context_chars}")
        self.max_context_chars = max_context_chars

    def check_length(self, document_text: str) -> None:
        if len(document_text) > self.max_context_chars:
            raise ValidationError(
                f"Document is too long ({len(document_text):,} characters; "
                f"the limit is {self.max_context_chars:,}). "
                "Please shorten it and try again."
            )

    def compose(self, request: QueryRequest) -> PromptBundle:
        """
        Build the prompt for ``request``.

        Raises
        ------
        ValidationError
            If the document exceeds ``max_context_chars``.
        """
        self.check_length(request.document_text)

        if request.mode is Mode.EXTRACT:
            system_instruction = prompts.EXTRACTION_SYSTEM_PROMPT
            question_template = prompts.FOCUS_AREA_TEMPLATE
            contract = OutputContract.STRICT_JSON
        elif request.has_document:
            system_instruction = prompts.DOCUMENT_QA_SYSTEM_PROMPT
            question_template = prompts.QUESTION_TEMPLATE
            contract = OutputContract.FREE_TEXT
        else:
            system_instruction = prompts.GENERAL_QA_SYSTEM_PROMPT
            question_template = prompts.QUESTION_TEMPLATE
            contract = OutputContract.FREE_TEXT

        blocks: List[str] = []
        if request.has_document:
            blocks.append(prompts.DOCUMENT_BLOCK_TEMPLATE.format(document=request.document_text))
        if request.has_question:
            blocks.append(question_template.format(question=request.question))

        return PromptBundle(
            system_instruction=system_instruction,
            user_message="\n\n".join(blocks),
            output_contract=contract,
        )
