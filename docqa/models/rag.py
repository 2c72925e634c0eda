"""Retrieval pipeline data models.

Chunks are the ephemeral unit of indexing; ``IndexedVector`` is what the
vector store persists; ``ScoredChunk`` is what a search returns.  All
models use frozen config.

Flow::

    extracted text --chunker--> Chunk --embedding--> IndexedVector
                                                     |
    question --embedding--> query vector --search--> ScoredChunk
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field

# Fixed namespace so vector ids are stable across processes and hosts.
_VECTOR_ID_NAMESPACE = uuid.UUID("6f1c2a4e-9b1d-4c55-8a43-2b7e0d9f51c3")


def vector_id_for(user_id: str, document_id: int, chunk_index: int) -> str:
    """Deterministic vector id for one chunk of one document.

    Re-indexing the same document produces the same ids, so repeated
    upserts overwrite rather than duplicate.
    """
    return str(uuid.uuid5(_VECTOR_ID_NAMESPACE, f"{user_id}:{document_id}:{chunk_index}"))


class Chunk(BaseModel):
    """A text span of a document, positioned among its siblings."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="The chunk's textual content.")
    user_id: str
    document_id: int
    chunk_index: int = Field(ge=0, description="Zero-based ordinal within the document.")
    total_chunks: int = Field(ge=1, description="Number of sibling chunks for the document.")
    filename: str = ""


class VectorPayload(BaseModel):
    """Metadata stored alongside every vector.  Filters match on these fields."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    document_id: int
    content: str
    filename: str
    chunk_index: int = Field(ge=0)
    total_chunks: int = Field(ge=1)


class IndexedVector(BaseModel):
    """A point in the vector index.  Created during ingestion, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique, deterministic point id.")
    embedding: list[float]
    payload: VectorPayload

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: list[float]) -> IndexedVector:
        return cls(
            id=vector_id_for(chunk.user_id, chunk.document_id, chunk.chunk_index),
            embedding=embedding,
            payload=VectorPayload(
                user_id=chunk.user_id,
                document_id=chunk.document_id,
                content=chunk.text,
                filename=chunk.filename,
                chunk_index=chunk.chunk_index,
                total_chunks=chunk.total_chunks,
            ),
        )


class ScoredChunk(BaseModel):
    """A search hit: the stored payload plus its cosine similarity."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float = Field(description="Cosine similarity to the query vector.")
    payload: VectorPayload

    @property
    def text(self) -> str:
        return self.payload.content


class UpsertReport(BaseModel):
    """Acknowledgement summary for a batched upsert."""

    model_config = ConfigDict(frozen=True)

    total_points: int = Field(default=0, ge=0)
    total_batches: int = Field(default=0, ge=0)
    committed_batches: int = Field(default=0, ge=0)


class IngestionResult(BaseModel):
    """Summary of one ingestion or re-index run."""

    model_config = ConfigDict(frozen=True)

    document_id: int
    filename: str
    chunks_created: int = Field(default=0, ge=0, description="Chunks embedded and indexed.")
    text_length: int = Field(default=0, ge=0, description="Characters of extracted text.")
    ingestion_time: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall-clock time in seconds for the run.",
    )
