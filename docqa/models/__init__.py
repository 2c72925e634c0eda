"""docqa domain models: re-exports all public model classes.

Organized by concern:
    - documents.py: persisted records (documents, chat turns, user quota)
    - rag.py: chunks, vectors, search hits and ingestion summaries
"""

from __future__ import annotations

from docqa.models.documents import ChatTurn, Document, PlanTier, QuotaCounter, UserQuota
from docqa.models.rag import (
    Chunk,
    IndexedVector,
    IngestionResult,
    ScoredChunk,
    UpsertReport,
    VectorPayload,
    vector_id_for,
)

__all__ = [
    "ChatTurn",
    "Chunk",
    "Document",
    "IndexedVector",
    "IngestionResult",
    "PlanTier",
    "QuotaCounter",
    "ScoredChunk",
    "UpsertReport",
    "UserQuota",
    "VectorPayload",
    "vector_id_for",
]
