"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **quota -> extract -> persist -> chunk -> embed -> upsert**.

:class:`IngestionService` coordinates its collaborators without any of
them knowing about each other:

    1. QuotaLedger          -- consumes one upload for the user
    2. TextExtractor        -- PDF bytes to plain text (OCR fallback)
    3. IDocumentStore       -- persists the Document row
    4. RecursiveTextChunker -- overlapping ~800-character spans
    5. EmbeddingService     -- one vector per chunk, bounded concurrency
    6. IVectorStoreProvider -- batched upsert, each batch acknowledged

Once the Document row exists it is never rolled back.  If embedding or
indexing fails afterwards, :class:`PartiallyIndexedError` tells the caller
which document is incomplete so :meth:`IngestionService.reindex` can
finish the job without consuming another upload.
"""

from __future__ import annotations

import time

import structlog

from docqa.interfaces.document_store import IDocumentStore
from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.documents import Document, QuotaCounter
from docqa.models.rag import Chunk, IndexedVector, IngestionResult
from docqa.services.chunker import RecursiveTextChunker
from docqa.services.embedding_service import EmbeddingService
from docqa.services.quota_ledger import QuotaLedger
from docqa.services.text_extractor import TextExtractor
from docqa.utils.concurrency import map_bounded
from docqa.utils.errors import (
    DocumentNotFoundError,
    EmbeddingFailedError,
    IndexWriteFailedError,
    PartiallyIndexedError,
    ProviderTimeoutError,
)

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Turns an uploaded PDF into a stored, searchable document.

    Parameters
    ----------
    quota:
        Gate for the per-user upload counter.
    extractor:
        PDF-to-text strategy chain.
    chunker:
        Splits extracted text into overlapping spans.
    embedder:
        Produces fixed-dimension vectors for chunk text.
    vector_store:
        Stores vectors with their payloads.
    store:
        Relational store for the Document row.
    upsert_batch_size:
        Points per vector-store write.
    embed_concurrency:
        Maximum embedding calls in flight for one document.
    """

    def __init__(
        self,
        quota: QuotaLedger,
        extractor: TextExtractor,
        chunker: RecursiveTextChunker,
        embedder: EmbeddingService,
        vector_store: IVectorStoreProvider,
        store: IDocumentStore,
        upsert_batch_size: int = 100,
        embed_concurrency: int = 4,
    ) -> None:
        self._quota = quota
        self._extractor = extractor
        self._chunker = chunker
        self._embedder = embedder
        self._vector_store = vector_store
        self._store = store
        self._upsert_batch_size = upsert_batch_size
        self._embed_concurrency = max(1, embed_concurrency)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, user_id: str, data: bytes, filename: str) -> IngestionResult:
        """Run the full pipeline for one upload.

        Raises
        ------
        QuotaExceededError
            Free-tier upload ceiling reached; nothing else happens.
        ImageBasedUnsupportedError, ExtractionFailedError
            No usable text.  The upload still counts against the quota.
        PartiallyIndexedError
            The document was stored but not all chunks were indexed.
        """
        start = time.monotonic()
        log = logger.bind(user_id=user_id, filename=filename)

        await self._quota.try_increment(user_id, QuotaCounter.PDF_UPLOADS)
        text = await self._extractor.extract(data)
        document = await self._store.create_document(user_id, filename, text)

        indexed = await self._index_document(document)
        elapsed = time.monotonic() - start
        log.info(
            "document_ingested",
            document_id=document.id,
            text_length=len(text),
            chunks=indexed,
            elapsed_s=round(elapsed, 3),
        )
        return IngestionResult(
            document_id=document.id,
            filename=document.filename,
            chunks_created=indexed,
            text_length=len(text),
            ingestion_time=elapsed,
        )

    async def reindex(self, user_id: str, document_id: int) -> IngestionResult:
        """Rebuild a document's vectors from its stored text.

        Deletes the document's existing vectors first, so repeated calls
        converge on one clean copy.  Does not consume quota.
        """
        start = time.monotonic()
        document = await self._store.get_document(user_id, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id=document_id)

        removed = await self._vector_store.delete_by_document(user_id, document_id)
        indexed = await self._index_document(document)
        elapsed = time.monotonic() - start
        logger.info(
            "document_reindexed",
            user_id=user_id,
            document_id=document_id,
            removed=removed,
            chunks=indexed,
            elapsed_s=round(elapsed, 3),
        )
        return IngestionResult(
            document_id=document.id,
            filename=document.filename,
            chunks_created=indexed,
            text_length=len(document.content),
            ingestion_time=elapsed,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _index_document(self, document: Document) -> int:
        """Chunk, embed and upsert one document.  Returns the chunks indexed."""
        texts = self._chunker.chunk(document.content)
        if not texts:
            logger.info("document_has_no_chunks", document_id=document.id)
            return 0

        total = len(texts)
        chunks = [
            Chunk(
                text=text,
                user_id=document.user_id,
                document_id=document.id,
                chunk_index=idx,
                total_chunks=total,
                filename=document.filename,
            )
            for idx, text in enumerate(texts)
        ]

        vectors = await self._embed_chunks(document, chunks)
        points = [IndexedVector.from_chunk(c, v) for c, v in zip(chunks, vectors, strict=True)]

        try:
            report = await self._vector_store.upsert(points, batch_size=self._upsert_batch_size)
        except IndexWriteFailedError as exc:
            logger.warning(
                "document_partially_indexed",
                document_id=document.id,
                indexed=exc.committed_points,
                total=total,
                failed_batch=exc.failed_batch,
            )
            raise PartiallyIndexedError(
                message=f"Indexed {exc.committed_points} of {total} chunks: {exc.message}",
                document_id=document.id,
                indexed_chunks=exc.committed_points,
                total_chunks=total,
                provider_name=exc.provider_name,
            ) from exc

        return report.total_points

    async def _embed_chunks(self, document: Document, chunks: list[Chunk]) -> list[list[float]]:
        """Embed every chunk in order; any failure aborts the document."""
        results = await map_bounded(
            lambda chunk: self._embedder.embed_single(chunk.text),
            chunks,
            limit=self._embed_concurrency,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        if not failures:
            return results  # type: ignore[return-value]

        first = failures[0]
        if not isinstance(first, (EmbeddingFailedError, ProviderTimeoutError)):
            raise first
        logger.warning(
            "document_embedding_failed",
            document_id=document.id,
            failed_chunks=len(failures),
            total=len(chunks),
            error=str(first),
        )
        raise PartiallyIndexedError(
            message=f"Embedding failed for {len(failures)} of {len(chunks)} chunks: {first.message}",
            document_id=document.id,
            indexed_chunks=0,
            total_chunks=len(chunks),
            provider_name=first.provider_name,
        ) from first
