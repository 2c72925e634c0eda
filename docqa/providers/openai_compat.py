"""Plumbing shared by adapters that talk the OpenAI HTTP API.

OpenAI itself, OpenAI-compatible hosts and Ollama's ``/v1`` endpoint all
go through ``openai.AsyncOpenAI``.  The SDK's own retries are switched off
everywhere: :func:`docqa.utils.resilience.call_with_retry` owns the retry
policy, and SDK retries would multiply the attempts.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import openai

from docqa.utils.errors import DocQAError, ProviderTimeoutError, RateLimitError

_CONNECT_TIMEOUT_SECONDS = 5.0


def client_timeout(read_seconds: float) -> openai.Timeout:
    return openai.Timeout(read_seconds, connect=_CONNECT_TIMEOUT_SECONDS)


def ollama_api_root(base_url: str) -> str:
    """Strip trailing slashes so ``/v1`` and ``/api/tags`` can be appended."""
    return base_url.rstrip("/")


@contextmanager
def mapped_openai_errors(provider_name: str, failure: type[DocQAError]) -> Iterator[None]:
    """Re-raise SDK exceptions as docqa errors.

    Rate limits and timeouts keep their own types so callers can retry
    them; any other API failure becomes *failure*.
    """
    try:
        yield
    except openai.RateLimitError as exc:
        raise RateLimitError(
            message=f"{provider_name} rate limited: {exc}",
            provider_name=provider_name,
        ) from exc
    except openai.APITimeoutError as exc:
        raise ProviderTimeoutError(
            message=f"{provider_name} did not answer in time",
            provider_name=provider_name,
        ) from exc
    except openai.APIError as exc:
        raise failure(
            message=f"{provider_name} request failed: {exc}",
            provider_name=provider_name,
        ) from exc
