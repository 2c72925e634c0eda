"""Business-logic services.

- **text_extractor** -- PDF bytes to text, OCR fallback for scanned pages
- **chunker** -- recursive, overlapping character windows
- **embedding_service** -- fixed-dimension embeddings with retry policy
- **quota_ledger** -- per-user upload/question ceilings
- **answer_synthesizer** -- LLM answers restricted to retrieved excerpts
- **ingestion_service** -- upload pipeline orchestration
- **qa_service** -- question pipeline orchestration
"""

from docqa.services.answer_synthesizer import (
    EMPTY_RESPONSE_FALLBACK,
    OUT_OF_SCOPE_ANSWER,
    AnswerSynthesizer,
)
from docqa.services.chunker import RecursiveTextChunker
from docqa.services.embedding_service import EmbeddingService
from docqa.services.ingestion_service import IngestionService
from docqa.services.qa_service import QAService
from docqa.services.quota_ledger import QuotaLedger
from docqa.services.text_extractor import TextExtractor

__all__ = [
    "EMPTY_RESPONSE_FALLBACK",
    "OUT_OF_SCOPE_ANSWER",
    "AnswerSynthesizer",
    "EmbeddingService",
    "IngestionService",
    "QAService",
    "QuotaLedger",
    "RecursiveTextChunker",
    "TextExtractor",
]
