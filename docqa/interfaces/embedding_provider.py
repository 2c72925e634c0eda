"""Contract for turning chunk and question text into vectors.

Adapters hand back the backend's vectors as-is.  Fitting them to the
index dimension happens once, in
:class:`~docqa.services.embedding_service.EmbeddingService`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Implemented by OpenAIEmbeddingProvider and OllamaEmbeddingProvider
# (docqa/providers/embedding/).
class IEmbeddingProvider(ABC):
    """An embedding model shared by ingestion and question answering."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*, one vector per input in the same order.

        Raises
        ------
        docqa.utils.errors.RateLimitError
            The backend throttled the call.
        docqa.utils.errors.ProviderTimeoutError
            The backend did not answer in time.
        docqa.utils.errors.EmbeddingFailedError
            Any other backend failure.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Embed one text."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Length of the vectors this backend returns, e.g. 768 for ``nomic-embed-text``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Short identifier used in logs and health output."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend is configured (and, for local servers, reachable)."""
