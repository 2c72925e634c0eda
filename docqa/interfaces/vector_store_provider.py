"""Abstract base class for vector-store service providers.

Defines the contract for storing and querying embedded document chunks.
The only shipped implementation wraps ChromaDB; the contract is small
enough that Qdrant or pgvector adapters can slot in behind it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docqa.models.rag import IndexedVector, ScoredChunk, UpsertReport


# Concrete implementation: ChromaDBProvider (docqa/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by the retrieval pipeline.

    **Filter syntax** (the *filters* dict in :meth:`search`) is a flat
    mapping of payload field to required value.  Every pair must match
    exactly, e.g. ``{"user_id": "u1", "document_id": 7}``.
    """

    @abstractmethod
    async def ensure_collection(self, dimension: int, distance_metric: str = "cosine") -> None:
        """Create the collection if it does not exist.

        Idempotent and safe to call concurrently.

        Raises
        ------
        docqa.utils.errors.ConfigurationError
            If the collection already exists with a different dimension or
            distance metric.
        """

    @abstractmethod
    async def upsert(self, points: list[IndexedVector], batch_size: int = 100) -> UpsertReport:
        """Write points in sequential batches.

        Each batch must be acknowledged by the store before the next batch
        is sent.

        Raises
        ------
        docqa.utils.errors.IndexWriteFailedError
            Carrying how many batches were committed and which one failed.
        """

    @abstractmethod
    async def search(
        self,
        query_vector: list[float],
        filters: dict[str, Any],
        limit: int = 5,
        score_threshold: float = 0.7,
    ) -> list[ScoredChunk]:
        """Return the nearest neighbours that satisfy *filters*.

        Parameters
        ----------
        query_vector:
            Embedding of the query.
        filters:
            Exact-match conjunction over payload fields.
        limit:
            Maximum number of results.
        score_threshold:
            Minimum similarity; results below it are dropped.

        Returns
        -------
        list[ScoredChunk]
            Ordered by descending score, ties broken by ascending
            ``chunk_index``.
        """

    @abstractmethod
    async def delete_by_document(self, user_id: str, document_id: int) -> int:
        """Delete every point belonging to one document.  Returns the count deleted."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is accessible."""
