"""Grounded answer generation from retrieved document excerpts.

The synthesizer sends the retrieved excerpts and the user's question to
the LLM under a system prompt that restricts the answer to the excerpts
and prescribes an exact sentence for questions the excerpts do not cover.
"""

from __future__ import annotations

import structlog

from docqa.interfaces.llm_provider import ILLMProvider
from docqa.utils.errors import ProviderTimeoutError, RateLimitError
from docqa.utils.resilience import call_with_retry

logger = structlog.get_logger(logger_name=__name__)

OUT_OF_SCOPE_ANSWER = "This clause doesn't appear to be included in the document."

EMPTY_RESPONSE_FALLBACK = "I apologize, but I could not generate a response."

_SYSTEM_PROMPT = (
    "You are a professional legal assistant helping users understand legal documents "
    "they have uploaded. Answer the user's question using only the document excerpts "
    "provided, by:\n"
    "- giving clear, accurate legal reasoning based on the text;\n"
    "- offering plain English summaries that are easy to understand;\n"
    "- explaining legal terms or concepts when needed;\n"
    "- referring to specific clauses or sections by name or number when helpful.\n\n"
    "Rules:\n"
    "If the question asks about content that is not in the excerpts, respond with exactly:\n"
    f'"{OUT_OF_SCOPE_ANSWER}"\n'
    "Never guess, invent, or assume information that is not present in the excerpts. "
    "Avoid technical legal jargon unless the user asks for it. Keep answers concise "
    "and focused on the question, in a professional and helpful tone."
)


class AnswerSynthesizer:
    """Turns (context, question) into an answer constrained to the context.

    Parameters
    ----------
    llm:
        Completion backend.
    temperature:
        Sampling temperature (0.3 keeps answers close to the text).
    max_tokens:
        Output token ceiling.
    timeout_seconds, max_attempts, backoff_seconds:
        Per-attempt timeout and retry policy for the LLM call.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
    ) -> None:
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout_seconds
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds

    @property
    def provider_name(self) -> str:
        return self._llm.get_provider_name()

    async def synthesize(self, context: str, question: str) -> str:
        """Generate an answer to *question* grounded in *context*.

        Returns the stripped model output, or :data:`EMPTY_RESPONSE_FALLBACK`
        when the model returns nothing.

        Raises
        ------
        ProviderTimeoutError
            Every attempt timed out or was rate limited.
        SynthesisError
            The backend failed with a non-transient error.
        """
        user_prompt = self._build_user_prompt(context, question)
        try:
            raw = await call_with_retry(
                lambda: self._llm.complete(
                    system_prompt=_SYSTEM_PROMPT,
                    user_prompt=user_prompt,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                timeout_seconds=self._timeout,
                max_attempts=self._max_attempts,
                backoff_seconds=self._backoff,
                provider_name=self.provider_name,
                operation="synthesize",
            )
        except RateLimitError as exc:
            raise ProviderTimeoutError(
                message=f"Answer generation rate limited after {self._max_attempts} attempts",
                provider_name=self.provider_name,
            ) from exc

        answer = (raw or "").strip()
        if not answer:
            logger.warning("synthesis_empty_response", provider=self.provider_name)
            return EMPTY_RESPONSE_FALLBACK
        return answer

    @staticmethod
    def _build_user_prompt(context: str, question: str) -> str:
        return f"Document excerpts:\n{context}\n\nQuestion: {question}"
