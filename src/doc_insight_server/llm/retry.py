"""
Resilient Request Client

Wraps a single JSON POST to a rate-limited HTTP service with retries.

Retry policy
------------
- 429 (too many requests): wait ``2**attempt * base_delay + uniform(0, jitter)``
  seconds and try again while attempts remain. A 429 on the last attempt is a
  failure like any other status.
- Any other non-2xx status: fail immediately with ``RequestError``.
- Transport failure: re-attempt the whole call while attempts remain; after
  the last attempt the original exception is re-raised unchanged.

Every call gets its own attempt budget. Nothing is shared between calls, so
there is no circuit breaker.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

import httpx

from ..core.errors import RequestError

logger = logging.getLogger("docinsight.retry")

RATE_LIMIT_STATUS = 429

SleepFn = Callable[[float], Awaitable[None]]
RandFn = Callable[[float, float], float]


@dataclass
class RetryState:
    """Per-call retry bookkeeping. Discarded when the call resolves."""

    max_attempts: int
    attempt: int = 0
    delays: List[float] = field(default_factory=list)

    @property
    def has_attempts_left(self) -> bool:
        return self.attempt + 1 < self.max_attempts


class ResilientRequestClient:
    """
    Asynchronous HTTP client with rate-limit aware retries.

    The client owns one ``httpx.AsyncClient`` and is safe to reuse across
    calls; call ``aclose()`` on shutdown.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        jitter: float = 1.0,
        timeout: float = 120.0,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFn = asyncio.sleep,
        rand: RandFn = random.uniform,
    ) -> None:
        """
        Parameters
        ----------
        max_attempts : int
            Default attempt budget per call (including the first attempt).

        base_delay : float
            Backoff base in seconds; the wait before retry ``n`` (0-based)
            is ``2**n * base_delay`` plus jitter.

        jitter : float
            Upper bound in seconds of the uniform random component.

        timeout : float
            HTTP timeout applied to each attempt.

        headers : Optional[Mapping[str, str]]
            Headers sent with every request (e.g. API key).

        transport, sleep, rand
            Test hooks for the HTTP transport, the suspension primitive and
            the jitter source.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1; got {max_attempts}")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.jitter = jitter
        self._sleep = sleep
        self._rand = rand
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=dict(headers or {}),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def backoff_delay(self, attempt: int) -> float:
        """Delay in seconds before retrying after the 0-based ``attempt``."""
        return (2 ** attempt) * self.base_delay + self._rand(0.0, self.jitter)

    async def call(
        self,
        endpoint: str,
        payload: Dict[str, Any],
        max_attempts: Optional[int] = None,
    ) -> httpx.Response:
        """
        POST ``payload`` as JSON to ``endpoint``.

        Returns
        -------
        httpx.Response
            The first 2xx response.

        Raises
        ------
        RequestError
            On a non-2xx status other than a retryable 429, or a 429 on the
            final attempt.

        httpx.TransportError
            The original transport failure once all attempts are used.
        """
        state = RetryState(max_attempts=max_attempts or self.max_attempts)

        while True:
            try:
                response = await self._client.post(endpoint, json=payload)
            except httpx.TransportError as exc:
                if not state.has_attempts_left:
                    logger.error(
                        "Request to %s failed after %d attempt(s): %s",
                        endpoint,
                        state.attempt + 1,
                        exc,
                    )
                    raise
                logger.warning(
                    "Attempt %d/%d failed (%s), retrying",
                    state.attempt + 1,
                    state.max_attempts,
                    type(exc).__name__,
                )
                state.attempt += 1
                continue

            if response.status_code == RATE_LIMIT_STATUS and state.has_attempts_left:
                delay = self.backoff_delay(state.attempt)
                state.delays.append(delay)
                logger.warning(
                    "Rate limited on attempt %d/%d. Retrying in %.2fs",
                    state.attempt + 1,
                    state.max_attempts,
                    delay,
                )
                await self._sleep(delay)
                state.attempt += 1
                continue

            if not response.is_success:
                raise RequestError(response.status_code, response.text)

            return response

    async def aclose(self) -> None:
        await self._client.aclose()
