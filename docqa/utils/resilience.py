"""Timeout and bounded-retry wrapper for capability provider calls.

Embedding and synthesis calls go through :func:`call_with_retry`, which
applies ``asyncio.wait_for`` per attempt and retries only the transient
failures (:class:`ProviderTimeoutError`, :class:`RateLimitError`) with a
linear backoff of ``backoff_seconds * attempt``.  Every other exception
propagates on the first occurrence.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from docqa.utils.errors import ProviderTimeoutError, RateLimitError
from docqa.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)

_TRANSIENT_ERRORS = (ProviderTimeoutError, RateLimitError)


async def call_with_retry(
    call: Callable[[], Awaitable[_T]],
    *,
    timeout_seconds: float,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    provider_name: str | None = None,
    operation: str = "provider_call",
) -> _T:
    """Await ``call()`` under a timeout, retrying transient failures.

    Parameters
    ----------
    call:
        Zero-argument factory returning a fresh awaitable per attempt.
    timeout_seconds:
        Budget for a single attempt.  Exceeding it raises
        :class:`ProviderTimeoutError`.
    max_attempts:
        Total attempts, including the first.  Values below 1 are treated
        as 1.
    backoff_seconds:
        Base delay; attempt *n* sleeps ``backoff_seconds * n`` before the
        next try.
    provider_name:
        Attached to timeout errors and retry log events.
    operation:
        Short label for log events (``"embed"``, ``"synthesize"``).

    Returns
    -------
    _T
        The first successful result.

    Raises
    ------
    ProviderTimeoutError
        When the final attempt times out.
    RateLimitError
        When the final attempt is rate limited.
    """
    attempts = max(1, max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            try:
                return await asyncio.wait_for(call(), timeout=timeout_seconds)
            except asyncio.TimeoutError as exc:
                raise ProviderTimeoutError(
                    message=f"{operation} exceeded {timeout_seconds}s",
                    provider_name=provider_name,
                ) from exc
        except _TRANSIENT_ERRORS as exc:
            if attempt >= attempts:
                _logger.warning(
                    "provider_retries_exhausted",
                    operation=operation,
                    provider=provider_name,
                    attempts=attempts,
                    error=str(exc),
                )
                raise
            backoff = backoff_seconds * attempt
            _logger.info(
                "provider_retrying",
                operation=operation,
                provider=provider_name,
                attempt=attempt,
                backoff_s=backoff,
                error=type(exc).__name__,
            )
            await asyncio.sleep(backoff)

    # range() above always returns or raises.
    raise ProviderTimeoutError(provider_name=provider_name)
