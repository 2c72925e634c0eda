"""Application entry point: dependency assembly and FastAPI factory.

All providers and services are built once in :func:`build_components` and
attached to ``app.state`` by the lifespan handler.  Route handlers resolve
them through the ``Depends`` helpers in ``docqa/api/routes.py``.  The CLI
reuses :func:`build_components` so both surfaces share one wiring.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from docqa import __version__
from docqa.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docqa.api.routes import router as api_router
from docqa.config.loader import load_config
from docqa.config.settings import Settings
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.models.documents import QuotaCounter
from docqa.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docqa.providers.llm.ollama_provider import OllamaLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider
from docqa.providers.ocr.tesseract_provider import TesseractOCRProvider
from docqa.providers.persistence.sqlite_store import SQLiteDocumentStore
from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider
from docqa.services.answer_synthesizer import AnswerSynthesizer
from docqa.services.chunker import RecursiveTextChunker
from docqa.services.embedding_service import EmbeddingService
from docqa.services.ingestion_service import IngestionService
from docqa.services.qa_service import QAService
from docqa.services.quota_ledger import QuotaLedger
from docqa.services.text_extractor import TextExtractor
from docqa.utils.logging import configure_logging

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)

_logger: structlog.BoundLogger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Pick the answer-generation provider.

    OpenAI (or an OpenAI-compatible endpoint) when an API key is set,
    otherwise a local Ollama server.
    """
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Pick the embedding provider using the same priority as the LLM."""
    if app_settings.openai_api_key:
        return OpenAIEmbeddingProvider(settings=app_settings)
    return OllamaEmbeddingProvider(settings=app_settings)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    custom_settings: Settings | None = None,
    config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Parameters
    ----------
    custom_settings:
        Settings to build from.  Defaults to the module-level instance.
    config:
        A resolved configuration dict (see :func:`load_config`).  Loaded
        from ``custom_settings`` when omitted.

    Returns
    -------
    dict
        Flat mapping of named components, stored on ``app.state`` by the
        lifespan handler.
    """
    app_settings = custom_settings or settings
    cfg = config if config is not None else load_config(settings=app_settings)

    providers_cfg = cfg["providers"]
    retry_kwargs = {
        "timeout_seconds": providers_cfg["timeout_seconds"],
        "max_attempts": providers_cfg["max_attempts"],
        "backoff_seconds": providers_cfg["retry_backoff_seconds"],
    }

    # -- Persistence --
    document_store = SQLiteDocumentStore(db_path=cfg["persistence"]["database_path"])
    vector_store = ChromaDBProvider(
        persist_directory=cfg["vector_index"]["persist_dir"],
        collection_name=cfg["vector_index"]["collection"],
    )

    # -- Model providers --
    llm = _build_llm_provider(app_settings)
    embedding_provider = _build_embedding_provider(app_settings)
    ocr_enabled = bool(cfg["extraction"]["ocr_enabled"])
    ocr_provider = TesseractOCRProvider() if ocr_enabled else None

    # -- Services --
    free_tier = cfg["quota"]["free_tier"]
    quota_ledger = QuotaLedger(
        document_store,
        free_ceilings={
            QuotaCounter.PDF_UPLOADS: int(free_tier["pdf_uploads"]),
            QuotaCounter.QUESTION_COUNT: int(free_tier["question_count"]),
        },
    )
    extractor = TextExtractor(
        ocr_provider=ocr_provider,
        ocr_enabled=ocr_enabled,
        min_text_length=cfg["extraction"]["min_text_length"],
    )
    chunker = RecursiveTextChunker(
        chunk_size=cfg["chunking"]["chunk_size"],
        chunk_overlap=cfg["chunking"]["chunk_overlap"],
    )
    embedder = EmbeddingService(
        embedding_provider,
        dimension=cfg["embedding"]["dimension"],
        **retry_kwargs,
    )
    synthesizer = AnswerSynthesizer(
        llm,
        temperature=cfg["synthesis"]["temperature"],
        max_tokens=cfg["synthesis"]["max_tokens"],
        **retry_kwargs,
    )

    ingestion_service = IngestionService(
        quota=quota_ledger,
        extractor=extractor,
        chunker=chunker,
        embedder=embedder,
        vector_store=vector_store,
        store=document_store,
        upsert_batch_size=cfg["vector_index"]["upsert_batch_size"],
        embed_concurrency=cfg["embedding"]["concurrency"],
    )
    qa_service = QAService(
        quota=quota_ledger,
        store=document_store,
        embedder=embedder,
        vector_store=vector_store,
        synthesizer=synthesizer,
        top_k=cfg["retrieval"]["top_k"],
        score_threshold=cfg["retrieval"]["score_threshold"],
    )

    return {
        "config": cfg,
        "upload_policy": cfg["upload"],
        "ocr_enabled": ocr_enabled,
        "document_store": document_store,
        "vector_store": vector_store,
        "llm": llm,
        "embedding_provider": embedding_provider,
        "ocr_provider": ocr_provider,
        "quota_ledger": quota_ledger,
        "embedding_service": embedder,
        "answer_synthesizer": synthesizer,
        "ingestion_service": ingestion_service,
        "qa_service": qa_service,
    }


async def initialize_components(components: dict[str, Any]) -> None:
    """Check the embedding width, create tables and open the vector collection."""
    cfg = components["config"]
    components["embedding_service"].check_provider_dimension()
    await components["document_store"].initialize()
    await components["vector_store"].ensure_collection(
        cfg["embedding"]["dimension"],
        cfg["vector_index"]["distance_metric"],
    )


def _provider_registry(components: dict[str, Any]) -> dict[str, Any]:
    ocr_provider = components["ocr_provider"]
    return {
        "llm": components["llm"].is_available(),
        "llm_name": components["llm"].get_provider_name(),
        "embedding": components["embedding_provider"].is_available(),
        "embedding_name": components["embedding_provider"].get_provider_name(),
        "ocr": ocr_provider.is_available() if ocr_provider is not None else False,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_components(settings)
    await initialize_components(components)

    for key, value in components.items():
        setattr(application.state, key, value)
    application.state.provider_registry = _provider_registry(components)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        llm=application.state.provider_registry["llm_name"],
        embedding=application.state.provider_registry["embedding_name"],
        ocr_enabled=components["ocr_enabled"],
    )

    yield

    await components["document_store"].close()
    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docqa API",
        version=__version__,
        description=(
            "Upload a PDF, then ask questions answered strictly from its "
            "text, with per-user upload and question quotas."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docqa.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
