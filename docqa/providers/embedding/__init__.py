"""Embedding provider adapters.

Each adapter implements :class:`~docqa.interfaces.embedding_provider.IEmbeddingProvider`:

- **OpenAIEmbeddingProvider** -- OpenAI ``text-embedding-3-small`` or any
  OpenAI-compatible endpoint (requires ``OPENAI_API_KEY``).
- **OllamaEmbeddingProvider** -- local ``nomic-embed-text`` served by
  Ollama; used when no OpenAI key is configured.
"""

from docqa.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OllamaEmbeddingProvider", "OpenAIEmbeddingProvider"]
