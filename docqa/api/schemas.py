"""Pydantic request/response schemas for the docqa API.

Request schemas end with "Request", response schemas with "Response".
FastAPI validates incoming bodies against them (invalid input gets a 422)
and serializes outgoing objects through ``response_model=...``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """Response returned after a document is ingested."""

    document_id: int
    filename: str
    chunks_created: int
    text_length: int
    message: str = "Document processed successfully"


class ReindexRequest(BaseModel):
    """Re-run chunking and indexing for a stored document."""

    user_id: str = Field(..., min_length=1)


class AskQuestionRequest(BaseModel):
    """A question about one uploaded document."""

    user_id: str = Field(..., min_length=1)
    document_id: int = Field(..., ge=1)
    question: str = Field(..., min_length=1, max_length=2000)


class AskQuestionResponse(BaseModel):
    """Answer to a document question."""

    answer: str
    document_id: int


class UserResponse(BaseModel):
    """A user's profile and quota usage."""

    user_id: str
    name: str | None = None
    plan_status: str
    pdf_uploads: int
    question_count: int
    limits: dict[str, int]
    remaining: dict[str, int | None] = Field(
        description="Allowance left per counter; null means unlimited."
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UpdateNameRequest(BaseModel):
    """Set a user's display name."""

    name: str = Field(..., min_length=1, max_length=200)


class ChatTurnResponse(BaseModel):
    """One question/answer pair from the user's history."""

    id: int | None = None
    document_id: int | None = None
    filename: str | None = None
    question: str
    answer: str
    created_at: datetime | None = None


class ChatHistoryResponse(BaseModel):
    """A user's chat history, oldest first."""

    user_id: str
    turns: list[ChatTurnResponse] = Field(default_factory=list)
    total: int = 0


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    document_id: int | None = None
