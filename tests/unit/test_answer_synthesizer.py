"""Unit tests for AnswerSynthesizer: prompt shape, fallback, error mapping."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from docqa.services.answer_synthesizer import (
    EMPTY_RESPONSE_FALLBACK,
    OUT_OF_SCOPE_ANSWER,
    AnswerSynthesizer,
)
from docqa.utils.errors import ProviderTimeoutError, RateLimitError, SynthesisError


def _synth(llm, **kwargs) -> AnswerSynthesizer:
    kwargs.setdefault("backoff_seconds", 0.0)
    kwargs.setdefault("timeout_seconds", 1.0)
    return AnswerSynthesizer(llm, **kwargs)


class TestPrompt:
    async def test_context_and_question_sent(self, mock_llm_provider) -> None:
        await _synth(mock_llm_provider).synthesize("Clause 4. Rent is due monthly.", "When is rent due?")

        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["user_prompt"] == (
            "Document excerpts:\nClause 4. Rent is due monthly.\n\nQuestion: When is rent due?"
        )
        assert OUT_OF_SCOPE_ANSWER in kwargs["system_prompt"]
        assert "only the document excerpts" in kwargs["system_prompt"]

    async def test_sampling_parameters(self, mock_llm_provider) -> None:
        await _synth(mock_llm_provider).synthesize("ctx", "q")

        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 1000

    async def test_custom_parameters(self, mock_llm_provider) -> None:
        await _synth(mock_llm_provider, temperature=0.0, max_tokens=200).synthesize("ctx", "q")

        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 200


class TestAnswers:
    async def test_answer_is_stripped(self, mock_llm_provider) -> None:
        mock_llm_provider.complete = AsyncMock(return_value="  Sixty days.  \n")

        assert await _synth(mock_llm_provider).synthesize("ctx", "q") == "Sixty days."

    @pytest.mark.parametrize("raw", ["", "   ", None])
    async def test_empty_output_uses_fallback(self, mock_llm_provider, raw) -> None:
        mock_llm_provider.complete = AsyncMock(return_value=raw)

        assert await _synth(mock_llm_provider).synthesize("ctx", "q") == EMPTY_RESPONSE_FALLBACK


class TestErrors:
    async def test_rate_limit_retried_then_answered(self, mock_llm_provider) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=[RateLimitError(), "Answer"])

        assert await _synth(mock_llm_provider, max_attempts=2).synthesize("ctx", "q") == "Answer"

    async def test_exhausted_rate_limit_becomes_timeout(self, mock_llm_provider) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=RateLimitError())

        with pytest.raises(ProviderTimeoutError) as exc_info:
            await _synth(mock_llm_provider, max_attempts=2).synthesize("ctx", "q")
        assert exc_info.value.provider_name == "mock-llm"

    async def test_synthesis_error_propagates(self, mock_llm_provider) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=SynthesisError("500 from upstream"))

        with pytest.raises(SynthesisError):
            await _synth(mock_llm_provider).synthesize("ctx", "q")
        assert mock_llm_provider.complete.await_count == 1
