"""Unit tests for SQLiteDocumentStore.

Uses a temporary database file per test so nothing touches ``data/``.
"""

from __future__ import annotations

import pytest

from docqa.models.documents import PlanTier, QuotaCounter
from docqa.providers.persistence.sqlite_store import SQLiteDocumentStore


# ─── Initialization ───────────────────────────────────────────────


class TestInitialization:
    async def test_initialize_is_idempotent(self, tmp_path) -> None:
        store = SQLiteDocumentStore(db_path=tmp_path / "nested" / "store.db")
        await store.initialize()
        await store.initialize()

        assert (tmp_path / "nested" / "store.db").exists()

    def test_provider_name(self, document_store) -> None:
        assert document_store.get_provider_name() == "sqlite"


# ─── Users ────────────────────────────────────────────────────────


class TestUsers:
    async def test_get_or_create_user_defaults(self, document_store) -> None:
        user = await document_store.get_or_create_user("u1", name="Una")

        assert user.user_id == "u1"
        assert user.name == "Una"
        assert user.plan_status is PlanTier.FREE
        assert user.pdf_uploads == 0
        assert user.question_count == 0
        assert user.created_at is not None

    async def test_get_or_create_keeps_existing_row(self, document_store) -> None:
        await document_store.get_or_create_user("u1", name="Una")
        again = await document_store.get_or_create_user("u1", name="Other")

        assert again.name == "Una"

    async def test_update_user_name(self, document_store) -> None:
        await document_store.get_or_create_user("u2")
        user = await document_store.update_user_name("u2", "Vera")

        assert user.name == "Vera"

    async def test_set_plan_tier_creates_user(self, document_store) -> None:
        user = await document_store.set_plan_tier("u3", PlanTier.PAID)

        assert user.plan_status is PlanTier.PAID


# ─── Conditional increment ────────────────────────────────────────


class TestIncrementIfAllowed:
    async def test_increment_below_ceiling(self, document_store) -> None:
        user = await document_store.increment_if_allowed("u4", QuotaCounter.QUESTION_COUNT, 2)

        assert user is not None
        assert user.question_count == 1

    async def test_refused_at_ceiling(self, document_store) -> None:
        await document_store.increment_if_allowed("u5", QuotaCounter.PDF_UPLOADS, 1)

        refused = await document_store.increment_if_allowed("u5", QuotaCounter.PDF_UPLOADS, 1)

        assert refused is None
        user = await document_store.get_or_create_user("u5")
        assert user.pdf_uploads == 1

    async def test_zero_ceiling_refuses_new_user(self, document_store) -> None:
        refused = await document_store.increment_if_allowed("u6", QuotaCounter.PDF_UPLOADS, 0)

        assert refused is None
        # The user row is still created.
        user = await document_store.get_or_create_user("u6")
        assert user.pdf_uploads == 0

    async def test_paid_ignores_ceiling(self, document_store) -> None:
        await document_store.set_plan_tier("u7", PlanTier.PAID)

        user = await document_store.increment_if_allowed("u7", QuotaCounter.PDF_UPLOADS, 0)

        assert user is not None
        assert user.pdf_uploads == 1


# ─── Documents ────────────────────────────────────────────────────


class TestDocuments:
    async def test_create_and_get_document(self, document_store) -> None:
        created = await document_store.create_document("u8", "lease.pdf", "Full text")

        fetched = await document_store.get_document("u8", created.id)

        assert fetched == created
        assert fetched.filename == "lease.pdf"
        assert fetched.content == "Full text"

    async def test_ids_are_sequential(self, document_store) -> None:
        first = await document_store.create_document("u8", "a.pdf", "A")
        second = await document_store.create_document("u8", "b.pdf", "B")

        assert second.id > first.id

    async def test_document_is_scoped_to_owner(self, document_store) -> None:
        created = await document_store.create_document("owner", "nda.pdf", "Secret")

        assert await document_store.get_document("intruder", created.id) is None

    async def test_missing_document(self, document_store) -> None:
        assert await document_store.get_document("u8", 9999) is None


# ─── Chat history ─────────────────────────────────────────────────


class TestChatHistory:
    async def test_history_oldest_first_with_filename(self, document_store) -> None:
        doc = await document_store.create_document("u9", "lease.pdf", "Text")
        for n in range(3):
            await document_store.save_chat_turn("u9", doc.id, f"Q{n}", f"A{n}")

        history = await document_store.get_chat_history("u9")

        assert [t.question for t in history] == ["Q0", "Q1", "Q2"]
        assert all(t.filename == "lease.pdf" for t in history)

    async def test_history_filtered_by_document(self, document_store) -> None:
        doc_a = await document_store.create_document("u10", "a.pdf", "A")
        doc_b = await document_store.create_document("u10", "b.pdf", "B")
        await document_store.save_chat_turn("u10", doc_a.id, "about a", "x")
        await document_store.save_chat_turn("u10", doc_b.id, "about b", "y")

        history = await document_store.get_chat_history("u10", document_id=doc_b.id)

        assert [t.question for t in history] == ["about b"]

    async def test_history_is_per_user(self, document_store) -> None:
        doc = await document_store.create_document("u11", "a.pdf", "A")
        await document_store.save_chat_turn("u11", doc.id, "mine", "x")

        assert await document_store.get_chat_history("someone-else") == []

    async def test_save_returns_turn(self, document_store) -> None:
        turn = await document_store.save_chat_turn("u12", None, "Q", "A")

        assert turn.id is not None
        assert turn.document_id is None
        assert turn.answer == "A"


@pytest.mark.parametrize("counter", list(QuotaCounter))
async def test_counter_columns_exist(document_store, counter: QuotaCounter) -> None:
    user = await document_store.increment_if_allowed("u13", counter, 5)
    assert user.count_for(counter) == 1
