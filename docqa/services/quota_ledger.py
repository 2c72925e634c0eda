"""Per-user quota gate for uploads and questions.

Free-tier users get a fixed number of PDF uploads and questions (1 and 4
by default, see ``config/config.yaml``); paid users are unlimited.  The
check and the increment happen in one conditional database write, so
concurrent requests can never push a free user past a ceiling.

A refusal is an expected outcome, not a fault: it is logged at info
level and surfaced as :class:`QuotaExceededError`.
"""

from __future__ import annotations

import structlog

from docqa.interfaces.document_store import IDocumentStore
from docqa.models.documents import PlanTier, QuotaCounter, UserQuota
from docqa.utils.errors import QuotaExceededError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_FREE_CEILINGS: dict[QuotaCounter, int] = {
    QuotaCounter.PDF_UPLOADS: 1,
    QuotaCounter.QUESTION_COUNT: 4,
}

_LIMIT_MESSAGES: dict[QuotaCounter, str] = {
    QuotaCounter.PDF_UPLOADS: "Upload limit reached for the free plan",
    QuotaCounter.QUESTION_COUNT: "Question limit reached for the free plan",
}


class QuotaLedger:
    """Gates ingestion and querying on per-user counters."""

    def __init__(
        self,
        store: IDocumentStore,
        free_ceilings: dict[QuotaCounter, int] | None = None,
    ) -> None:
        self._store = store
        self._ceilings = dict(_DEFAULT_FREE_CEILINGS)
        if free_ceilings:
            self._ceilings.update(free_ceilings)

    def ceiling(self, counter: QuotaCounter) -> int:
        return self._ceilings[counter]

    async def try_increment(self, user_id: str, counter: QuotaCounter) -> UserQuota:
        """Consume one unit of *counter* for *user_id*.

        Creates the user on first use.  Returns the updated quota row.

        Raises
        ------
        QuotaExceededError
            The user is on the free tier and already at the ceiling.  The
            counter is left unchanged.
        """
        limit = self._ceilings[counter]
        updated = await self._store.increment_if_allowed(user_id, counter, limit)
        if updated is None:
            logger.info("quota_limit_reached", user_id=user_id, counter=counter.value, limit=limit)
            raise QuotaExceededError(
                message=_LIMIT_MESSAGES[counter],
                counter=counter.value,
                limit=limit,
            )

        logger.debug(
            "quota_incremented",
            user_id=user_id,
            counter=counter.value,
            value=updated.count_for(counter),
            plan_status=updated.plan_status.value,
        )
        return updated

    async def status(self, user_id: str) -> dict:
        """Return counts, ceilings and remaining allowance for a user.

        ``remaining`` values are ``None`` for paid users.
        """
        user = await self._store.get_or_create_user(user_id)
        unlimited = user.plan_status is PlanTier.PAID
        return {
            "user": user,
            "limits": {c.value: self._ceilings[c] for c in QuotaCounter},
            "remaining": {
                c.value: None if unlimited else max(0, self._ceilings[c] - user.count_for(c))
                for c in QuotaCounter
            },
        }
