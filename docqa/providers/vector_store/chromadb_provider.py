"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  Fully local, no external
service required.
"""

from __future__ import annotations

import asyncio
import math
import os
from typing import Any

# ChromaDB reports anonymous telemetry through PostHog; a client version
# mismatch makes that noisy, so it is switched off at three levels: env
# var, the PostHog SDK flag, and the client Settings below.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.rag import IndexedVector, ScoredChunk, UpsertReport, VectorPayload
from docqa.utils.errors import ConfigurationError, DocQAError, IndexWriteFailedError

logger = structlog.get_logger(logger_name=__name__)

_SUPPORTED_METRICS = frozenset({"cosine", "l2", "ip"})


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    docqa always passes pre-computed embeddings, so ChromaDB's built-in
    embedding is never invoked.  Without this, ChromaDB downloads its
    default ONNX model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docqa uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    The collection is opened lazily by :meth:`ensure_collection`, which
    records the vector dimension and distance metric in the collection
    metadata so later opens can detect a mismatched configuration.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "legal_documents",
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collection: Any = None
        self._dimension: int | None = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_collection(self, dimension: int, distance_metric: str = "cosine") -> None:
        """Open or create the collection and verify its configuration.

        Serialized by an in-process lock; ChromaDB's get-or-create makes
        the call idempotent across processes.
        """
        if distance_metric not in _SUPPORTED_METRICS:
            raise ConfigurationError(
                message=f"Unsupported distance metric: {distance_metric}",
                provider_name=self.get_provider_name(),
            )

        async with self._lock:
            if self._collection is not None and self._dimension == dimension:
                return

            if self._collection_exists():
                # Existing collections are opened without metadata so the
                # stored configuration is validated, never overwritten.
                collection = self._open_collection()
                self._validate_collection(collection, dimension, distance_metric)
            else:
                collection = self._open_collection(
                    metadata={"hnsw:space": distance_metric, "dimension": dimension}
                )

            self._collection = collection
            self._dimension = dimension
            logger.info(
                "chromadb_collection_ready",
                collection=self._collection_name,
                dimension=dimension,
                distance_metric=distance_metric,
                points=collection.count(),
            )

    async def upsert(self, points: list[IndexedVector], batch_size: int = 100) -> UpsertReport:
        """Upsert points in sequential batches.

        ChromaDB's ``upsert`` is synchronous and returns only after the
        batch is persisted, so each return is the acknowledgement for that
        batch.  The first failing batch stops the run.
        """
        collection = self._require_collection()
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if not points:
            return UpsertReport()

        total_batches = math.ceil(len(points) / batch_size)
        committed_points = 0

        for batch_index in range(total_batches):
            batch = points[batch_index * batch_size : (batch_index + 1) * batch_size]
            self._check_dimensions(batch)
            try:
                collection.upsert(
                    ids=[p.id for p in batch],
                    embeddings=[p.embedding for p in batch],
                    documents=[p.payload.content for p in batch],
                    metadatas=[self._payload_to_metadata(p.payload) for p in batch],
                )
            except Exception as exc:
                logger.warning(
                    "chromadb_upsert_batch_failed",
                    failed_batch=batch_index,
                    committed_batches=batch_index,
                    total_batches=total_batches,
                    error=str(exc),
                )
                raise IndexWriteFailedError(
                    message=f"ChromaDB upsert failed on batch {batch_index + 1}/{total_batches}: {exc}",
                    provider_name=self.get_provider_name(),
                    committed_batches=batch_index,
                    failed_batch=batch_index,
                    total_batches=total_batches,
                    committed_points=committed_points,
                ) from exc
            committed_points += len(batch)

        logger.info(
            "chromadb_upsert",
            count=committed_points,
            batches=total_batches,
        )
        return UpsertReport(
            total_points=committed_points,
            total_batches=total_batches,
            committed_batches=total_batches,
        )

    async def search(
        self,
        query_vector: list[float],
        filters: dict[str, Any],
        limit: int = 5,
        score_threshold: float = 0.7,
    ) -> list[ScoredChunk]:
        """Cosine-similarity search restricted to points matching *filters*.

        Over-fetches twice the limit so that ties at the cut-off are
        resolved by ``chunk_index`` rather than by ChromaDB's internal order.
        """
        collection = self._require_collection()
        if limit < 1:
            return []

        try:
            total = collection.count()
            if total == 0:
                return []

            kwargs: dict[str, Any] = {
                "query_embeddings": [query_vector],
                "n_results": min(limit * 2, total),
                "include": ["documents", "metadatas", "distances"],
            }
            where_clause = self._translate_filters(filters)
            if where_clause:
                kwargs["where"] = where_clause

            results = collection.query(**kwargs)
        except Exception as exc:
            raise DocQAError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []

        ids = results["ids"][0]
        documents = results["documents"][0] if results["documents"] else [""] * len(ids)
        metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(ids)
        distances = results["distances"][0] if results["distances"] else [1.0] * len(ids)

        hits: list[ScoredChunk] = []
        for point_id, doc_text, meta, distance in zip(
            ids, documents, metadatas, distances, strict=True
        ):
            similarity = max(0.0, min(1.0, 1.0 - distance))
            if similarity < score_threshold:
                continue
            hits.append(
                ScoredChunk(
                    id=point_id,
                    score=similarity,
                    payload=self._metadata_to_payload(meta, doc_text),
                )
            )

        hits.sort(key=lambda h: (-h.score, h.payload.chunk_index))
        hits = hits[:limit]

        logger.debug(
            "chromadb_search",
            raw_results=len(ids),
            results_count=len(hits),
            top_score=hits[0].score if hits else 0.0,
        )
        return hits

    async def delete_by_document(self, user_id: str, document_id: int) -> int:
        """Delete all points for one (owner, document) pair."""
        collection = self._require_collection()
        where = self._translate_filters({"user_id": user_id, "document_id": document_id})
        try:
            existing = collection.get(where=where, include=[])
            count = len(existing["ids"]) if existing["ids"] else 0
            if count > 0:
                collection.delete(ids=existing["ids"])
        except Exception as exc:
            raise DocQAError(
                message=f"ChromaDB delete_by_document failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_delete_by_document",
            user_id=user_id,
            document_id=document_id,
            deleted_count=count,
        )
        return count

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB client answers a heartbeat."""
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _collection_exists(self) -> bool:
        # list_collections() returns names in newer chromadb, Collection
        # objects in older releases.
        names = {
            c if isinstance(c, str) else c.name for c in self._client.list_collections()
        }
        return self._collection_name in names

    def _open_collection(self, metadata: dict[str, Any] | None = None) -> Any:
        kwargs: dict[str, Any] = {"name": self._collection_name}
        if metadata:
            kwargs["metadata"] = metadata
        # A collection persisted with a different embedding function
        # rejects the no-op one; reopen without it in that case.
        try:
            return self._client.get_or_create_collection(
                embedding_function=_NoopEmbeddingFunction(), **kwargs
            )
        except ValueError:
            return self._client.get_or_create_collection(**kwargs)

    def _require_collection(self) -> Any:
        if self._collection is None:
            raise ConfigurationError(
                message="Vector collection not initialised; call ensure_collection() first",
                provider_name=self.get_provider_name(),
            )
        return self._collection

    def _check_dimensions(self, batch: list[IndexedVector]) -> None:
        for point in batch:
            if len(point.embedding) != self._dimension:
                raise ConfigurationError(
                    message=(
                        f"Vector {point.id} has {len(point.embedding)} dimensions; "
                        f"collection expects {self._dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )

    def _validate_collection(self, collection: Any, dimension: int, distance_metric: str) -> None:
        """Fail loudly when an existing collection was built with other settings.

        Stored metadata is checked first; collections created without a
        recorded dimension are checked by peeking at one stored vector.
        """
        stored_meta = collection.metadata or {}
        stored_metric = stored_meta.get("hnsw:space", "l2")
        if stored_metric != distance_metric:
            raise ConfigurationError(
                message=(
                    f"Collection '{self._collection_name}' uses distance '{stored_metric}', "
                    f"expected '{distance_metric}'"
                ),
                provider_name=self.get_provider_name(),
            )

        stored_dim = stored_meta.get("dimension")
        if stored_dim is None and collection.count() > 0:
            sample = collection.peek(limit=1)
            embeddings = sample.get("embeddings") if sample else None
            if embeddings is not None and len(embeddings) > 0:
                stored_dim = len(embeddings[0])

        if stored_dim is not None and int(stored_dim) != dimension:
            logger.error(
                "embedding_dimension_mismatch",
                stored_dim=stored_dim,
                expected_dim=dimension,
                collection=self._collection_name,
            )
            raise ConfigurationError(
                message=(
                    f"Collection '{self._collection_name}' holds {stored_dim}-dim vectors "
                    f"but EMBEDDING_DIMENSION is {dimension}"
                ),
                provider_name=self.get_provider_name(),
            )

    @staticmethod
    def _payload_to_metadata(payload: VectorPayload) -> dict[str, str | int]:
        """ChromaDB metadata values must be str, int, float, or bool.

        The chunk text is stored as the ChromaDB document, not in metadata.
        """
        return {
            "user_id": payload.user_id,
            "document_id": payload.document_id,
            "filename": payload.filename,
            "chunk_index": payload.chunk_index,
            "total_chunks": payload.total_chunks,
        }

    @staticmethod
    def _metadata_to_payload(meta: dict[str, Any], text: str | None) -> VectorPayload:
        return VectorPayload(
            user_id=str(meta.get("user_id", "")),
            document_id=int(meta.get("document_id", 0)),
            content=text or "",
            filename=str(meta.get("filename", "")),
            chunk_index=int(meta.get("chunk_index", 0)),
            total_chunks=max(1, int(meta.get("total_chunks", 1))),
        )

    @staticmethod
    def _translate_filters(filters: dict[str, Any] | None) -> dict[str, Any] | None:
        """Turn an exact-match mapping into a ChromaDB ``where`` clause.

        ChromaDB requires ``$and`` when more than one field is constrained.
        """
        if not filters:
            return None
        clauses = [{key: {"$eq": value}} for key, value in filters.items()]
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}
