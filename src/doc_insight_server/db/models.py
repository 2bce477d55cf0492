"""
SQLAlchemy Models

Defines the database schema for the query history store.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# History Entry Model
# ---------------------------------------------------------------------

class HistoryRecord(Base):
    """
    One successful query for one owner.

    Rows are append-only. ``id`` breaks ties between rows written within the
    same timestamp resolution.
    """
    __tablename__ = "history_entry"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False, default="")
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_history_owner_created", "owner_id", "created_at"),
    )
