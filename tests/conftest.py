"""Shared pytest fixtures for the docqa test suite."""

from __future__ import annotations

import re
import textwrap
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.ocr_provider import IOCRProvider
from docqa.providers.persistence.sqlite_store import SQLiteDocumentStore
from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider
from docqa.services.answer_synthesizer import AnswerSynthesizer
from docqa.services.chunker import RecursiveTextChunker
from docqa.services.embedding_service import EmbeddingService
from docqa.services.ingestion_service import IngestionService
from docqa.services.qa_service import QAService
from docqa.services.quota_ledger import QuotaLedger
from docqa.services.text_extractor import TextExtractor

# ---------------------------------------------------------------------------
# Test PDFs
# ---------------------------------------------------------------------------

_PAGE_TOP = 72
_PAGE_BOTTOM = 770
_LINE_HEIGHT = 14


def build_pdf(text: str, wrap: int = 90) -> bytes:
    """Render *text* into a PDF with a real text layer.

    Lines are wrapped at *wrap* characters and spill onto new pages.  An
    empty string produces a single blank page (no text layer), which is
    what a scanned document looks like to the extractor.
    """
    doc = fitz.open()
    page = doc.new_page()
    y = _PAGE_TOP
    for paragraph in text.splitlines():
        for line in textwrap.wrap(paragraph, wrap) or [""]:
            if y > _PAGE_BOTTOM:
                page = doc.new_page()
                y = _PAGE_TOP
            if line:
                page.insert_text((72, y), line, fontsize=10)
            y += _LINE_HEIGHT
    data = doc.tobytes()
    doc.close()
    return data


LEASE_TEXT = "\n".join(
    [
        "RESIDENTIAL LEASE AGREEMENT",
        "This agreement is made between the landlord and the tenant named below.",
        *[
            f"Clause {n}. Either party may end this lease by termination notice of sixty days. "
            f"Termination takes effect at the end of a calendar month. A termination notice must "
            f"be delivered in writing to the address stated in this agreement."
            for n in range(1, 9)
        ],
    ]
)


@pytest.fixture
def pdf_factory() -> Callable[[str], bytes]:
    """Return the :func:`build_pdf` helper."""
    return build_pdf


@pytest.fixture
def lease_pdf() -> bytes:
    """A text-based PDF whose clauses are all about termination."""
    return build_pdf(LEASE_TEXT)


@pytest.fixture
def scanned_pdf() -> bytes:
    """A PDF with one blank page and no text layer."""
    return build_pdf("")


# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------

# One axis per topic word; text is embedded as topic word counts plus a
# small constant, so texts sharing a topic have cosine similarity near 1
# and texts on different topics score close to 0.
TOPICS = ("termination", "rent", "deposit", "repairs", "insurance", "parking", "pets", "utilities")
TOPIC_DIM = len(TOPICS)
_WORD_RE = re.compile(r"[a-z]+")


def topic_vector(text: str) -> list[float]:
    words = _WORD_RE.findall(text.lower())
    return [words.count(topic) + 0.01 for topic in TOPICS]


class TopicEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    def __init__(self) -> None:
        self.calls = 0

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        return [topic_vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls += 1
        return topic_vector(text)

    def get_dimension(self) -> int:
        return TOPIC_DIM

    def get_provider_name(self) -> str:
        return "topic-embedding"

    def is_available(self) -> bool:
        return True


@pytest.fixture
def topic_embedding_provider() -> TopicEmbeddingProvider:
    return TopicEmbeddingProvider()


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider with a fixed answer.

    Override with ``mock_llm_provider.complete.return_value = "..."`` or
    ``.side_effect = [...]`` for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value="Either party must give sixty days' written notice.")
    return mock


@pytest.fixture
def mock_ocr_provider() -> IOCRProvider:
    """Mock IOCRProvider that 'reads' a short termination clause."""
    mock = MagicMock(spec=IOCRProvider)
    mock.get_provider_name.return_value = "mock-ocr"
    mock.is_available.return_value = True
    mock.extract_text = AsyncMock(
        return_value=(
            "SCANNED LEASE\nThe tenant may give termination notice of thirty days "
            "by registered letter to the landlord."
        )
    )
    return mock


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
async def document_store(tmp_path: Path) -> SQLiteDocumentStore:
    """Initialised SQLite store in a temporary directory."""
    store = SQLiteDocumentStore(db_path=tmp_path / "db" / "docqa.db")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def vector_store(tmp_path: Path) -> ChromaDBProvider:
    """ChromaDB collection sized for :class:`TopicEmbeddingProvider`."""
    provider = ChromaDBProvider(
        persist_directory=str(tmp_path / "chroma"),
        collection_name="test_documents",
    )
    await provider.ensure_collection(TOPIC_DIM, "cosine")
    return provider


# ---------------------------------------------------------------------------
# Assembled pipelines
# ---------------------------------------------------------------------------


@pytest.fixture
def pipeline(
    document_store: SQLiteDocumentStore,
    vector_store: ChromaDBProvider,
    topic_embedding_provider: TopicEmbeddingProvider,
    mock_llm_provider: ILLMProvider,
    mock_ocr_provider: IOCRProvider,
) -> SimpleNamespace:
    """Real store, index, chunker and extractor; fake embeddings and LLM."""
    quota = QuotaLedger(document_store)
    embedder = EmbeddingService(
        topic_embedding_provider,
        dimension=TOPIC_DIM,
        timeout_seconds=5.0,
        max_attempts=2,
        backoff_seconds=0.0,
    )
    synthesizer = AnswerSynthesizer(mock_llm_provider, timeout_seconds=5.0, backoff_seconds=0.0)
    ingestion = IngestionService(
        quota=quota,
        extractor=TextExtractor(ocr_provider=mock_ocr_provider, ocr_enabled=True),
        chunker=RecursiveTextChunker(),
        embedder=embedder,
        vector_store=vector_store,
        store=document_store,
    )
    qa = QAService(
        quota=quota,
        store=document_store,
        embedder=embedder,
        vector_store=vector_store,
        synthesizer=synthesizer,
    )
    return SimpleNamespace(
        store=document_store,
        vector_store=vector_store,
        quota=quota,
        embedder=embedder,
        llm=mock_llm_provider,
        ocr=mock_ocr_provider,
        ingestion=ingestion,
        qa=qa,
    )
