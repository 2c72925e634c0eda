"""LLM adapter for a local Ollama server.

Used when no OpenAI key is configured, so questions can be answered with
no hosted model at all.  Needs ``ollama pull llama3.1`` (or whatever
``OLLAMA_TEXT_MODEL`` names) on the server at ``OLLAMA_BASE_URL``.
"""

from __future__ import annotations

import httpx
import openai

from docqa.config.settings import Settings
from docqa.providers.llm.chat_base import ChatCompletionProvider
from docqa.providers.openai_compat import client_timeout, ollama_api_root

_PROBE_TIMEOUT_SECONDS = 5.0


class OllamaLLMProvider(ChatCompletionProvider):
    """Answers questions with a model served by Ollama's ``/v1`` API."""

    def __init__(self, settings: Settings) -> None:
        self._root = ollama_api_root(settings.ollama_base_url)
        self._model = settings.ollama_text_model
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._root}/v1",
            api_key="ollama",  # ignored by Ollama, required by the SDK
            timeout=client_timeout(settings.provider_timeout_seconds),
            max_retries=0,
        )

    def get_provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        return bool(self._root)

    async def validate_credentials(self) -> bool:
        """Ask the server for its installed models (``/api/tags``)."""
        if not self._root:
            return False
        try:
            async with httpx.AsyncClient(timeout=_PROBE_TIMEOUT_SECONDS) as client:
                response = await client.get(f"{self._root}/api/tags")
        except httpx.HTTPError:
            return False
        return response.status_code == 200
