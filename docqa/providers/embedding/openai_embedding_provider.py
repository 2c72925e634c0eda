"""Embedding adapter for OpenAI and OpenAI-compatible hosts.

The ``text-embedding-3`` models accept a ``dimensions`` option and shorten
their vectors server-side, so for them the configured index dimension is
requested directly.  Other models return their native size and
:class:`~docqa.services.embedding_service.EmbeddingService` trims it.
"""

from __future__ import annotations

from typing import Any

import openai

from docqa.config.settings import Settings
from docqa.providers.embedding.batched_base import BatchedEmbeddingProvider
from docqa.providers.openai_compat import client_timeout

_DEFAULT_MODEL = "text-embedding-3-small"

# Native output sizes of models commonly served behind this API.
_NATIVE_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
}

_SHORTENABLE_MODELS = frozenset({"text-embedding-3-small", "text-embedding-3-large"})


class OpenAIEmbeddingProvider(BatchedEmbeddingProvider):
    """Embeds chunk and question text with ``OPENAI_EMBEDDING_MODEL``."""

    # Per-request input cap of the OpenAI embeddings endpoint.
    _batch_limit = 2048

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )
        self._model = settings.openai_embedding_model or _DEFAULT_MODEL
        self._shortened_to = (
            settings.embedding_dimension if self._model in _SHORTENABLE_MODELS else None
        )
        self._client = openai.AsyncOpenAI(
            api_key=self._api_key,
            base_url=settings.openai_base_url or None,
            timeout=client_timeout(settings.provider_timeout_seconds),
            max_retries=0,
        )

    def _request_options(self) -> dict[str, Any]:
        if self._shortened_to is None:
            return {}
        return {"dimensions": self._shortened_to}

    def get_dimension(self) -> int:
        if self._shortened_to is not None:
            return self._shortened_to
        return _NATIVE_DIMENSIONS.get(self._model, 768)

    def get_provider_name(self) -> str:
        return self._label

    def is_available(self) -> bool:
        return bool(self._api_key)
