"""Abstract base class for the relational persistence store.

Owns the ``users``, ``documents`` and ``chat_history`` tables.  The quota
ledger's atomic check-then-increment lives here because it must run
inside one database transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docqa.models.documents import ChatTurn, Document, PlanTier, QuotaCounter, UserQuota


# Concrete implementation: SQLiteDocumentStore (docqa/providers/persistence/)
class IDocumentStore(ABC):
    """Contract for document, chat-history and quota persistence.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indexes if they do not exist.  Idempotent."""

    @abstractmethod
    async def close(self) -> None:
        """Release any held resources."""

    # -- Users / quota -------------------------------------------------------

    @abstractmethod
    async def get_or_create_user(self, user_id: str, name: str | None = None) -> UserQuota:
        """Return the user's quota row, inserting a zeroed free-tier row first if absent."""

    @abstractmethod
    async def increment_if_allowed(
        self,
        user_id: str,
        counter: QuotaCounter,
        free_ceiling: int,
    ) -> UserQuota | None:
        """Atomically increment *counter* unless a free-tier ceiling blocks it.

        Runs as one write transaction: create the user if absent, then a
        single conditional ``UPDATE`` that succeeds for paid users or
        when the current count is below *free_ceiling*.

        Returns
        -------
        UserQuota | None
            The updated row, or ``None`` when the ceiling was reached and
            nothing was changed.
        """

    @abstractmethod
    async def set_plan_tier(self, user_id: str, tier: PlanTier) -> UserQuota:
        """Switch a user's plan tier (creating the user if needed)."""

    @abstractmethod
    async def update_user_name(self, user_id: str, name: str) -> UserQuota:
        """Set a user's display name (creating the user if needed)."""

    # -- Documents -----------------------------------------------------------

    @abstractmethod
    async def create_document(self, user_id: str, filename: str, content: str) -> Document:
        """Insert a document and return it with its store-assigned id."""

    @abstractmethod
    async def get_document(self, user_id: str, document_id: int) -> Document | None:
        """Return the document if it exists *and* belongs to ``user_id``."""

    # -- Chat history --------------------------------------------------------

    @abstractmethod
    async def save_chat_turn(
        self,
        user_id: str,
        document_id: int | None,
        question: str,
        answer: str,
    ) -> ChatTurn:
        """Append one answered question."""

    @abstractmethod
    async def get_chat_history(
        self,
        user_id: str,
        document_id: int | None = None,
    ) -> list[ChatTurn]:
        """Return the user's chat turns oldest first, optionally for one document."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite"``."""
