"""Contract for the text-generation backend behind answer synthesis."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Implemented by OpenAILLMProvider and OllamaLLMProvider (docqa/providers/llm/).
class ILLMProvider(ABC):
    """A chat model that turns a system prompt and a user prompt into text."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Return the model's reply to *user_prompt* under *system_prompt*.

        An empty string is a valid reply; the synthesizer decides what to
        show in that case.

        Raises
        ------
        docqa.utils.errors.RateLimitError
            The backend throttled the call.
        docqa.utils.errors.ProviderTimeoutError
            The backend did not answer in time.
        docqa.utils.errors.SynthesisError
            Any other backend failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Short identifier used in logs and health output, e.g. ``"ollama"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether enough configuration is present to attempt a call."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Contact the backend with a cheap request and report success."""
