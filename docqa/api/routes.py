"""FastAPI API routes for docqa.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; ``main.py`` populates
``app.state`` in the lifespan handler.

Endpoint                                   Method  Description
─────────────────────────────────────────────────────────────────────────
/api/v1/documents/upload                   POST    Upload a PDF → extract → index
/api/v1/documents/{document_id}/reindex    POST    Rebuild a document's vectors
/api/v1/questions                          POST    Ask a question about a document
/api/v1/users/{user_id}                    GET     Profile and quota usage
/api/v1/users/{user_id}/name               PUT     Update display name
/api/v1/users/{user_id}/history            GET     Chat history (oldest first)
/api/v1/health                             GET     Health check + provider status (?verify=true)

Application errors (quota, extraction, provider failures) propagate to
``ErrorHandlingMiddleware``, which maps them to status codes.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, UploadFile

from docqa import __version__
from docqa.api.schemas import (
    AskQuestionRequest,
    AskQuestionResponse,
    ChatHistoryResponse,
    ChatTurnResponse,
    ErrorResponse,
    HealthResponse,
    ReindexRequest,
    UpdateNameRequest,
    UploadResponse,
    UserResponse,
)
from docqa.interfaces.document_store import IDocumentStore
from docqa.models.documents import UserQuota
from docqa.services.ingestion_service import IngestionService
from docqa.services.qa_service import QAService
from docqa.services.quota_ledger import QuotaLedger
from docqa.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

# --- Upload validation defaults (overridden by the ``upload`` config section) ---
_ALLOWED_CONTENT_TYPES = frozenset({"application/pdf"})
_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB

# Stream uploads in 64 KB increments so oversized files are rejected
# without buffering the whole payload.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion pipeline from application state."""
    return request.app.state.ingestion_service


def _get_qa_service(request: Request) -> QAService:
    """Return the question pipeline from application state."""
    return request.app.state.qa_service


def _get_quota_ledger(request: Request) -> QuotaLedger:
    """Return the quota ledger from application state."""
    return request.app.state.quota_ledger


def _get_document_store(request: Request) -> IDocumentStore:
    """Return the relational store from application state."""
    return request.app.state.document_store


def _get_upload_policy(request: Request) -> dict[str, Any]:
    """Return upload limits from application state, falling back to defaults."""
    policy = getattr(request.app.state, "upload_policy", None) or {}
    max_mb = policy.get("max_file_size_mb")
    return {
        "allowed_content_types": frozenset(
            policy.get("allowed_content_types") or _ALLOWED_CONTENT_TYPES
        ),
        "max_file_size": int(max_mb * 1024 * 1024) if max_mb else _MAX_FILE_SIZE,
    }


IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
QAServiceDep = Annotated[QAService, Depends(_get_qa_service)]
QuotaDep = Annotated[QuotaLedger, Depends(_get_quota_ledger)]
DocumentStoreDep = Annotated[IDocumentStore, Depends(_get_document_store)]
UploadPolicyDep = Annotated[dict[str, Any], Depends(_get_upload_policy)]


async def _user_response(quota: QuotaLedger, user_id: str) -> UserResponse:
    status = await quota.status(user_id)
    user: UserQuota = status["user"]
    return UserResponse(
        user_id=user.user_id,
        name=user.name,
        plan_status=user.plan_status.value,
        pdf_uploads=user.pdf_uploads,
        question_count=user.question_count,
        limits=status["limits"],
        remaining=status["remaining"],
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    response_model=UploadResponse,
    responses={
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
    summary="Upload a PDF for text extraction and indexing",
)
async def upload_document(
    file: UploadFile,
    user_id: Annotated[str, Form(min_length=1)],
    ingestion: IngestionDep,
    policy: UploadPolicyDep,
) -> UploadResponse:
    """Validate a PDF upload, then extract, chunk, embed and index it."""
    content_type = file.content_type or ""
    allowed = policy["allowed_content_types"]
    if content_type not in allowed:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type: {content_type}. Allowed: {', '.join(sorted(allowed))}",
        )

    max_size = policy["max_file_size"]
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: >{max_size // (1024 * 1024)} MB. Maximum: {max_size} bytes.",
            )
        chunks.append(chunk)
    data = b"".join(chunks)
    del chunks

    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    filename = file.filename or "document.pdf"
    result = await ingestion.ingest(user_id, data, filename)
    return UploadResponse(
        document_id=result.document_id,
        filename=result.filename,
        chunks_created=result.chunks_created,
        text_length=result.text_length,
    )


@router.post(
    "/documents/{document_id}/reindex",
    response_model=UploadResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Rebuild the vector index entries for a stored document",
)
async def reindex_document(
    document_id: int,
    body: ReindexRequest,
    ingestion: IngestionDep,
) -> UploadResponse:
    """Re-chunk and re-embed a document's stored text.  Does not consume quota."""
    result = await ingestion.reindex(body.user_id, document_id)
    return UploadResponse(
        document_id=result.document_id,
        filename=result.filename,
        chunks_created=result.chunks_created,
        text_length=result.text_length,
        message="Document reindexed successfully",
    )


# ---------------------------------------------------------------------------
# Question endpoint
# ---------------------------------------------------------------------------


@router.post(
    "/questions",
    response_model=AskQuestionResponse,
    responses={404: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    summary="Ask a question answered from one uploaded document",
)
async def ask_question(body: AskQuestionRequest, qa: QAServiceDep) -> AskQuestionResponse:
    answer = await qa.answer(body.user_id, body.document_id, body.question.strip())
    return AskQuestionResponse(answer=answer, document_id=body.document_id)


# ---------------------------------------------------------------------------
# User endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Get (or create) a user with quota status",
)
async def get_user(user_id: str, quota: QuotaDep) -> UserResponse:
    return await _user_response(quota, user_id)


@router.put(
    "/users/{user_id}/name",
    response_model=UserResponse,
    summary="Update a user's display name",
)
async def update_user_name(
    user_id: str,
    body: UpdateNameRequest,
    store: DocumentStoreDep,
    quota: QuotaDep,
) -> UserResponse:
    await store.update_user_name(user_id, body.name.strip())
    _logger.info("user_name_updated", user_id=user_id)
    return await _user_response(quota, user_id)


@router.get(
    "/users/{user_id}/history",
    response_model=ChatHistoryResponse,
    summary="List a user's questions and answers, oldest first",
)
async def get_chat_history(
    user_id: str,
    store: DocumentStoreDep,
    document_id: Annotated[int | None, Query(ge=1)] = None,
) -> ChatHistoryResponse:
    turns = await store.get_chat_history(user_id, document_id=document_id)
    return ChatHistoryResponse(
        user_id=user_id,
        turns=[
            ChatTurnResponse(
                id=t.id,
                document_id=t.document_id,
                filename=t.filename,
                question=t.question,
                answer=t.answer,
                created_at=t.created_at,
            )
            for t in turns
        ],
        total=len(turns),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health and provider availability",
)
async def health_check(
    request: Request,
    verify: Annotated[bool, Query()] = False,
) -> HealthResponse:
    """Return application health, version, and provider availability.

    With ``?verify=true`` the LLM backend is also contacted to confirm its
    credentials; a rejected check marks the LLM unavailable.
    """
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    llm = getattr(request.app.state, "llm", None)
    if verify and llm is not None:
        credentials_ok = await llm.validate_credentials()
        providers["llm_credentials"] = credentials_ok
        providers["llm"] = providers.get("llm", False) and credentials_ok

    vector_store = getattr(request.app.state, "vector_store", None)
    if vector_store is not None:
        providers["vector_store"] = vector_store.is_available()

    critical_ok = all(providers.get(key, False) for key in ("llm", "embedding", "vector_store"))
    ocr_expected = getattr(request.app.state, "ocr_enabled", False)
    ocr_ok = providers.get("ocr", False) or not ocr_expected

    if critical_ok and ocr_ok:
        status = "healthy"
    elif critical_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=__version__, providers=providers)
