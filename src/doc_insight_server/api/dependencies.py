"""
Dependency providers for the API routes.

Only this module (and ``main``) reads ``settings``; every component below
receives explicit values through its constructor. Tests replace any of these
through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from ..config import settings
from ..db import get_sessionmaker
from ..history.cache import HistoryCache
from ..history.store import HistoryStore, SqlHistoryStore
from ..insight.composer import PromptComposer
from ..insight.service import InsightService
from ..llm.client import GeminiClient
from ..llm.retry import ResilientRequestClient


@lru_cache
def get_request_client() -> ResilientRequestClient:
    return ResilientRequestClient(
        max_attempts=settings.max_retry_attempts,
        base_delay=settings.retry_base_delay,
        jitter=settings.retry_jitter,
        timeout=settings.request_timeout,
        headers={"x-goog-api-key": settings.gemini_api_key.get_secret_value()},
    )


@lru_cache
def get_gemini_client() -> GeminiClient:
    return GeminiClient(
        get_request_client(),
        endpoint_url=settings.generate_content_url,
        max_attempts=settings.max_retry_attempts,
    )


@lru_cache
def get_prompt_composer() -> PromptComposer:
    return PromptComposer(max_context_chars=settings.max_context_chars)


@lru_cache
def get_history_store() -> HistoryStore:
    return SqlHistoryStore(
        get_sessionmaker(),
        poll_interval=settings.history_poll_interval,
    )


@lru_cache
def get_insight_service() -> InsightService:
    return InsightService(
        get_prompt_composer(),
        get_gemini_client(),
        history_store=get_history_store(),
    )


def get_history_cache(
    store: HistoryStore = Depends(get_history_store),
) -> HistoryCache:
    # One cache per request: a cache tracks a single owner at a time
    return HistoryCache(store)
