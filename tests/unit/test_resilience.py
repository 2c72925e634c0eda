"""Unit tests for call_with_retry: per-attempt timeout and bounded retries."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from docqa.utils.errors import EmbeddingFailedError, ProviderTimeoutError, RateLimitError
from docqa.utils.resilience import call_with_retry


async def test_returns_first_success() -> None:
    call = AsyncMock(return_value="ok")

    result = await call_with_retry(call, timeout_seconds=1.0, backoff_seconds=0.0)

    assert result == "ok"
    assert call.await_count == 1


async def test_retries_rate_limit_then_succeeds() -> None:
    call = AsyncMock(side_effect=[RateLimitError(), RateLimitError(), "ok"])

    result = await call_with_retry(call, timeout_seconds=1.0, max_attempts=3, backoff_seconds=0.0)

    assert result == "ok"
    assert call.await_count == 3


async def test_exhausted_rate_limit_is_reraised() -> None:
    call = AsyncMock(side_effect=RateLimitError(provider_name="p"))

    with pytest.raises(RateLimitError):
        await call_with_retry(call, timeout_seconds=1.0, max_attempts=2, backoff_seconds=0.0)
    assert call.await_count == 2


async def test_slow_call_times_out_each_attempt() -> None:
    attempts = 0

    async def slow() -> str:
        nonlocal attempts
        attempts += 1
        await asyncio.sleep(5)
        return "late"

    with pytest.raises(ProviderTimeoutError) as exc_info:
        await call_with_retry(
            slow,
            timeout_seconds=0.01,
            max_attempts=2,
            backoff_seconds=0.0,
            provider_name="slowpoke",
        )

    assert attempts == 2
    assert exc_info.value.provider_name == "slowpoke"


async def test_non_transient_error_not_retried() -> None:
    call = AsyncMock(side_effect=EmbeddingFailedError("bad input"))

    with pytest.raises(EmbeddingFailedError):
        await call_with_retry(call, timeout_seconds=1.0, max_attempts=3, backoff_seconds=0.0)
    assert call.await_count == 1


async def test_backoff_is_linear(monkeypatch) -> None:
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr("docqa.utils.resilience.asyncio.sleep", fake_sleep)
    call = AsyncMock(side_effect=[RateLimitError(), RateLimitError(), "ok"])

    await call_with_retry(call, timeout_seconds=1.0, max_attempts=3, backoff_seconds=0.5)

    assert delays == [0.5, 1.0]


async def test_zero_attempts_still_calls_once() -> None:
    call = AsyncMock(return_value=1)

    assert await call_with_retry(call, timeout_seconds=1.0, max_attempts=0) == 1
