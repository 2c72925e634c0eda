"""Persistent domain records: documents, chat turns and per-user quota rows.

These mirror the three relational tables owned by the SQLite store
(``documents``, ``chat_history``, ``users``).  All models are frozen;
the store returns fresh instances on every read.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PlanTier(str, Enum):  # noqa: UP042
    """Billing tier.  Only ``free`` users are subject to quota ceilings."""

    FREE = "free"
    PAID = "paid"


class QuotaCounter(str, Enum):  # noqa: UP042
    """The two counters tracked per user.

    Values double as the column names in the ``users`` table.
    """

    PDF_UPLOADS = "pdf_uploads"
    QUESTION_COUNT = "question_count"


class Document(BaseModel):
    """An uploaded document and its full extracted text.  Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Store-assigned document id.")
    user_id: str = Field(description="Opaque owner identifier.")
    filename: str = Field(description="Original upload filename.")
    content: str = Field(description="Full extracted text.")
    created_at: datetime | None = Field(default=None, description="Creation timestamp (UTC).")


class ChatTurn(BaseModel):
    """One answered question.  Append-only."""

    model_config = ConfigDict(frozen=True)

    id: int | None = Field(default=None, description="Store-assigned row id.")
    user_id: str
    document_id: int | None = Field(
        default=None, description="Document the question was asked against."
    )
    question: str
    answer: str
    created_at: datetime | None = None
    # Populated by history queries that join the documents table.
    filename: str | None = Field(default=None, description="Filename of the referenced document.")


class UserQuota(BaseModel):
    """Per-user quota record.  One per user, never deleted."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    name: str | None = None
    plan_status: PlanTier = PlanTier.FREE
    pdf_uploads: int = Field(default=0, ge=0)
    question_count: int = Field(default=0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def count_for(self, counter: QuotaCounter) -> int:
        """Return the current value of ``counter``."""
        if counter is QuotaCounter.PDF_UPLOADS:
            return self.pdf_uploads
        return self.question_count
