"""LLM provider adapters.

Implementations of ILLMProvider, both built on ChatCompletionProvider:
    - OpenAILLMProvider: gpt-4o-mini (also supports OpenAI-compatible APIs)
    - OllamaLLMProvider: local models via Ollama server (llama3.1)

At startup, main.py picks OpenAI when ``OPENAI_API_KEY`` is set and falls
back to Ollama otherwise.
"""

from docqa.providers.llm.ollama_provider import OllamaLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OllamaLLMProvider", "OpenAILLMProvider"]
