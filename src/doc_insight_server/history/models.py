"""
History Data Models

A HistoryEntry records one successful query for one caller identity. Entries
are immutable once written and are never updated or deleted by the service.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryEntry(BaseModel):
    """A single question/answer pair owned by one identity."""

    question: str = Field(
        default="",
        description="Question as the caller typed it; may be blank.",
    )

    answer: str = Field(
        ...,
        description="Content of the successful insight result.",
    )

    owner_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Stable caller identity the entry is scoped to.",
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation timestamp; display order is newest first.",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        from_attributes=True,
    )
