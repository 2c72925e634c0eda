"""LLM adapter for OpenAI and OpenAI-compatible hosts.

Setting ``OPENAI_BASE_URL`` (Groq, Together, Fireworks and the like)
points the same client at another host; the provider then reports itself
as ``openai-compatible``.
"""

from __future__ import annotations

import openai

from docqa.config.settings import Settings
from docqa.providers.llm.chat_base import ChatCompletionProvider
from docqa.providers.openai_compat import client_timeout

_DEFAULT_MODEL = "gpt-4o-mini"


class OpenAILLMProvider(ChatCompletionProvider):
    """Answers questions with an OpenAI chat model (``OPENAI_TEXT_MODEL``)."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._label = "openai-compatible" if settings.openai_base_url else "openai"
        self._model = settings.openai_text_model or _DEFAULT_MODEL
        self._client = openai.AsyncOpenAI(
            api_key=self._api_key,
            base_url=settings.openai_base_url or None,
            timeout=client_timeout(settings.provider_timeout_seconds),
            max_retries=0,
        )

    def get_provider_name(self) -> str:
        return self._label

    def is_available(self) -> bool:
        """A key is configured.  Whether it is accepted is not checked here."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        if not self._api_key:
            return False
        try:
            await self._client.models.list()
        except openai.APIError:
            return False
        return True
