"""Embedding with a fixed output dimension, timeouts and bounded retries.

Wraps an :class:`IEmbeddingProvider` so both pipelines see one contract:

* every vector has exactly ``dimension`` components -- longer provider
  vectors are truncated to the first ``dimension`` values, shorter ones
  raise :class:`EmbeddingFailedError`;
* each call runs under ``asyncio.wait_for`` and transient failures are
  retried with linear backoff (see :mod:`docqa.utils.resilience`);
* a rate limit that survives every retry surfaces as
  :class:`EmbeddingFailedError`.
"""

from __future__ import annotations

import structlog

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.utils.errors import ConfigurationError, EmbeddingFailedError, RateLimitError
from docqa.utils.resilience import call_with_retry

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingService:
    """Dimension-normalising, retrying front for an embedding provider."""

    def __init__(
        self,
        provider: IEmbeddingProvider,
        dimension: int = 768,
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
    ) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._provider = provider
        self._dimension = dimension
        self._timeout = timeout_seconds
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    async def embed_single(self, text: str) -> list[float]:
        """Embed one text and return a vector of exactly :attr:`dimension` floats."""
        vector = await self._call(lambda: self._provider.embed_single(text), "embed_single")
        return self._fit(vector)

    def check_provider_dimension(self) -> int:
        """Compare the provider's native vector length with :attr:`dimension`.

        Longer native vectors are accepted and truncated on every call;
        shorter ones could never fill the index, so they fail at startup.

        Returns
        -------
        int
            The provider's native dimension.

        Raises
        ------
        ConfigurationError
            The provider produces fewer than :attr:`dimension` components.
        """
        native = self._provider.get_dimension()
        if native < self._dimension:
            raise ConfigurationError(
                message=(
                    f"Embedding model produces {native}-dim vectors but the index "
                    f"expects {self._dimension}; lower EMBEDDING_DIMENSION"
                ),
                provider_name=self.provider_name,
            )
        if native > self._dimension:
            logger.warning(
                "embedding_vectors_truncated",
                provider=self.provider_name,
                native_dimension=native,
                dimension=self._dimension,
            )
        return native

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _call(self, factory, operation: str):  # noqa: ANN001, ANN202
        try:
            return await call_with_retry(
                factory,
                timeout_seconds=self._timeout,
                max_attempts=self._max_attempts,
                backoff_seconds=self._backoff,
                provider_name=self.provider_name,
                operation=operation,
            )
        except RateLimitError as exc:
            raise EmbeddingFailedError(
                message=f"Embedding rate limited after {self._max_attempts} attempts",
                provider_name=self.provider_name,
            ) from exc

    def _fit(self, vector: list[float]) -> list[float]:
        if len(vector) < self._dimension:
            raise EmbeddingFailedError(
                message=(
                    f"Provider returned {len(vector)}-dim vector; "
                    f"{self._dimension} dimensions required"
                ),
                provider_name=self.provider_name,
            )
        return [float(x) for x in vector[: self._dimension]]
