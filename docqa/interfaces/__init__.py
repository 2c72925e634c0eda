"""Public interface definitions for all external service providers.

Every external API or service docqa depends on is accessed through the
abstract base classes in this package.  Concrete adapters live in
``docqa/providers/`` and are wired together in ``docqa/main.py`` during
application startup; unit tests inject mocks or fakes instead.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider         →  OpenAIEmbeddingProvider,
                                  OllamaEmbeddingProvider
    ILLMProvider               →  OpenAILLMProvider, OllamaLLMProvider
    IVectorStoreProvider       →  ChromaDBProvider
    IOCRProvider               →  TesseractOCRProvider
    IDocumentStore             →  SQLiteDocumentStore
"""

from docqa.interfaces.document_store import IDocumentStore
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.ocr_provider import IOCRProvider
from docqa.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IOCRProvider",
    "IVectorStoreProvider",
]
