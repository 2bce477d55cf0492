"""
Database Package

Provides SQLAlchemy async session management and model definitions for the
query history store.
"""

from .session import (
    build_engine,
    build_sessionmaker,
    create_tables,
    get_async_engine,
    get_sessionmaker,
)
from .models import Base, HistoryRecord

__all__ = [
    "build_engine",
    "build_sessionmaker",
    "create_tables",
    "get_async_engine",
    "get_sessionmaker",
    "Base",
    "HistoryRecord",
]
