"""Retrieval-augmented question answering over one uploaded document.

Data flow for :meth:`QAService.answer`:

  1. QUOTA     -- consume one question for the user.
  2. OWNERSHIP -- the document must exist and belong to the user.
  3. EMBED     -- embed the question.
  4. RETRIEVE  -- top-k search restricted to (user, document), keeping
                  only hits at or above the similarity threshold.
  5. ANSWER    -- no hits: return the fixed out-of-scope sentence without
                  calling the LLM.  Otherwise join the hits (best first)
                  with blank lines and ask the synthesizer.
  6. HISTORY   -- append a chat turn.  A failed write is logged and the
                  answer is still returned.
"""

from __future__ import annotations

import structlog

from docqa.interfaces.document_store import IDocumentStore
from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.documents import QuotaCounter
from docqa.models.rag import ScoredChunk
from docqa.services.answer_synthesizer import OUT_OF_SCOPE_ANSWER, AnswerSynthesizer
from docqa.services.embedding_service import EmbeddingService
from docqa.services.quota_ledger import QuotaLedger
from docqa.utils.errors import DocumentNotFoundError
from docqa.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

# Retrieval defaults; deployments override them in config/config.yaml.
_RETRIEVAL_TOP_K = 5
_RETRIEVAL_SCORE_THRESHOLD = 0.7

_CONTEXT_SEPARATOR = "\n\n"


class QAService:
    """Answers questions strictly from a single document's indexed chunks.

    Parameters
    ----------
    quota:
        Gate for the per-user question counter.
    store:
        Document ownership lookups and chat-history writes.
    embedder:
        Embeds the question with the same model used at ingestion.
    vector_store:
        Similarity search over the document's chunks.
    synthesizer:
        LLM-backed answer generation.
    top_k, score_threshold:
        Retrieval limits.
    """

    def __init__(
        self,
        quota: QuotaLedger,
        store: IDocumentStore,
        embedder: EmbeddingService,
        vector_store: IVectorStoreProvider,
        synthesizer: AnswerSynthesizer,
        top_k: int = _RETRIEVAL_TOP_K,
        score_threshold: float = _RETRIEVAL_SCORE_THRESHOLD,
    ) -> None:
        self._quota = quota
        self._store = store
        self._embedder = embedder
        self._vector_store = vector_store
        self._synthesizer = synthesizer
        self._top_k = top_k
        self._score_threshold = score_threshold

    async def answer(self, user_id: str, document_id: int, question: str) -> str:
        """Answer *question* about document *document_id*.

        Raises
        ------
        QuotaExceededError
            Free-tier question ceiling reached.
        DocumentNotFoundError
            No such document for this user.
        EmbeddingFailedError, ProviderTimeoutError, SynthesisError
            Provider failures after retries.
        """
        await self._quota.try_increment(user_id, QuotaCounter.QUESTION_COUNT)

        document = await self._store.get_document(user_id, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id=document_id)

        hits = await self.retrieve(user_id, document_id, question)
        if not hits:
            logger.info(
                "qa_no_relevant_context",
                user_id=user_id,
                document_id=document_id,
                threshold=self._score_threshold,
            )
            answer = OUT_OF_SCOPE_ANSWER
        else:
            context = _CONTEXT_SEPARATOR.join(hit.text for hit in hits)
            answer = await self._synthesizer.synthesize(context, question)
            logger.info(
                "qa_answered",
                user_id=user_id,
                document_id=document_id,
                context_chunks=len(hits),
                top_score=round(hits[0].score, 4),
                answer_length=len(answer),
            )

        await self._record_turn(user_id, document_id, question, answer)
        return answer

    async def retrieve(self, user_id: str, document_id: int, question: str) -> list[ScoredChunk]:
        """Return the chunks of one document relevant to *question*, best first."""
        query_vector = await self._embedder.embed_single(question)
        return await self._vector_store.search(
            query_vector,
            filters={"user_id": user_id, "document_id": document_id},
            limit=self._top_k,
            score_threshold=self._score_threshold,
        )

    async def _record_turn(
        self,
        user_id: str,
        document_id: int,
        question: str,
        answer: str,
    ) -> None:
        try:
            await self._store.save_chat_turn(user_id, document_id, question, answer)
        except Exception as exc:
            logger.error(
                "chat_history_write_failed",
                user_id=user_id,
                document_id=document_id,
                error=str(exc),
            )
