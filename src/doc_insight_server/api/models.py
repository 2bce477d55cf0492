"""
API Models for the Document Insight Server

This module defines the Pydantic models used for request/response validation
across the summarize, extract and history endpoints.

Field names follow the browser client's camelCase convention.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field, ConfigDict

from ..history.models import HistoryEntry


# ---------------------------------------------------------------------
# Summarize Models
# ---------------------------------------------------------------------

class SummarizeRequest(BaseModel):
    """
    Query payload: document text and/or a question.

    ``responseFormat="json"`` selects structured extraction; the reply is then
    a JSON document serialized as a string.
    """
    documentText: str = ""
    question: str = ""
    responseFormat: Literal["text", "json"] = "text"

    model_config = ConfigDict(extra="forbid")


class SummarizeResponse(BaseModel):
    summary: str

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Extraction Models
# ---------------------------------------------------------------------

class ExtractResponse(BaseModel):
    """
    Text pulled from an uploaded PDF, page markers included.
    """
    documentText: str
    pageCount: int = Field(..., ge=1)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# History Models
# ---------------------------------------------------------------------

class HistoryEntryOut(BaseModel):
    question: str
    answer: str
    createdAt: datetime

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistoryEntryOut":
        return cls(
            question=entry.question,
            answer=entry.answer,
            createdAt=entry.created_at,
        )


class HistoryResponse(BaseModel):
    entries: List[HistoryEntryOut] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class SuggestionsResponse(BaseModel):
    suggestions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
