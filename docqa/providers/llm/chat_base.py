"""Chat-completion call shared by the OpenAI and Ollama LLM adapters."""

from __future__ import annotations

import openai
import structlog

from docqa.interfaces.llm_provider import ILLMProvider
from docqa.providers.openai_compat import mapped_openai_errors
from docqa.utils.errors import SynthesisError

logger = structlog.get_logger(logger_name=__name__)


class ChatCompletionProvider(ILLMProvider):
    """Base for LLM backends reached through ``openai.AsyncOpenAI``.

    Subclasses build ``_client`` and choose ``_model``; this class sends
    the two-message chat request and maps SDK errors.
    """

    _client: openai.AsyncOpenAI
    _model: str

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Return the model's reply, or ``""`` when the message body is empty."""
        name = self.get_provider_name()
        with mapped_openai_errors(name, SynthesisError):
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )

        content = response.choices[0].message.content if response.choices else None
        usage = response.usage
        logger.info(
            "llm_completion",
            provider=name,
            model=self._model,
            tokens=usage.total_tokens if usage else None,
            empty=not content,
        )
        return content or ""
