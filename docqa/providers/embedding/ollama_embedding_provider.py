"""Embedding adapter for a local Ollama server (no API key).

Defaults to ``nomic-embed-text``, whose 768-dimensional output matches the
default index size.
"""

from __future__ import annotations

import httpx
import openai

from docqa.config.settings import Settings
from docqa.providers.embedding.batched_base import BatchedEmbeddingProvider
from docqa.providers.openai_compat import client_timeout, ollama_api_root

_PROBE_TIMEOUT_SECONDS = 3.0

_NATIVE_DIMENSIONS: dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
}


class OllamaEmbeddingProvider(BatchedEmbeddingProvider):
    """Embeds text with ``OLLAMA_EMBEDDING_MODEL`` via Ollama's ``/v1`` API."""

    def __init__(self, settings: Settings) -> None:
        self._root = ollama_api_root(settings.ollama_base_url)
        self._model = settings.ollama_embedding_model
        self._dimension = _NATIVE_DIMENSIONS.get(self._model, settings.embedding_dimension)
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._root}/v1",
            api_key="ollama",
            timeout=client_timeout(settings.provider_timeout_seconds),
            max_retries=0,
        )

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "ollama_embedding"

    def is_available(self) -> bool:
        """Probe ``/api/tags``; a refused or slow connection means unavailable."""
        if not self._root:
            return False
        try:
            response = httpx.get(f"{self._root}/api/tags", timeout=_PROBE_TIMEOUT_SECONDS)
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
        return response.status_code == 200
