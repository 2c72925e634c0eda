"""Batched ``/embeddings`` calls shared by the OpenAI and Ollama adapters."""

from __future__ import annotations

from typing import Any

import openai
import structlog

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.providers.openai_compat import mapped_openai_errors
from docqa.utils.errors import EmbeddingFailedError

logger = structlog.get_logger(logger_name=__name__)


class BatchedEmbeddingProvider(IEmbeddingProvider):
    """Base for embedding backends reached through ``openai.AsyncOpenAI``.

    Inputs longer than ``_batch_limit`` are sent as consecutive requests;
    vectors come back in input order.  Subclasses build ``_client``, pick
    ``_model`` and may add request options (e.g. ``dimensions``).
    """

    _client: openai.AsyncOpenAI
    _model: str
    _batch_limit: int = 512

    def _request_options(self) -> dict[str, Any]:
        return {}

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        name = self.get_provider_name()
        options = self._request_options()
        vectors: list[list[float]] = []
        with mapped_openai_errors(name, EmbeddingFailedError):
            for start in range(0, len(texts), self._batch_limit):
                batch = texts[start : start + self._batch_limit]
                response = await self._client.embeddings.create(
                    model=self._model, input=batch, **options
                )
                vectors.extend(item.embedding for item in response.data)

        logger.debug(
            "embeddings_created",
            provider=name,
            model=self._model,
            texts=len(texts),
            requests=-(-len(texts) // self._batch_limit),
        )
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        vectors = await self.embed([text])
        return vectors[0]
