"""Utility modules for docqa.

- **errors** -- Exception hierarchy rooted at DocQAError; each pipeline
  stage raises its own subclass so callers and the API middleware can
  handle failures by kind.
- **concurrency** -- ``map_bounded``, an order-preserving fan-out used to bound
  parallel embedding calls during ingestion.
- **resilience** -- per-attempt timeout and linear-backoff retry for
  embedding and synthesis calls.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from docqa.utils.errors import (
    ConfigurationError,
    DocQAError,
    DocumentNotFoundError,
    EmbeddingFailedError,
    ExtractionFailedError,
    ImageBasedUnsupportedError,
    IndexWriteFailedError,
    PartiallyIndexedError,
    ProviderTimeoutError,
    QuotaExceededError,
    RateLimitError,
    SynthesisError,
)

# -- Async concurrency helpers ---------------------------------------------
from docqa.utils.concurrency import map_bounded

# -- Provider call policy --------------------------------------------------
from docqa.utils.resilience import call_with_retry

# -- Structured logging setup ----------------------------------------------
from docqa.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DocQAError",
    "DocumentNotFoundError",
    "EmbeddingFailedError",
    "ExtractionFailedError",
    "ImageBasedUnsupportedError",
    "IndexWriteFailedError",
    "PartiallyIndexedError",
    "ProviderTimeoutError",
    "QuotaExceededError",
    "RateLimitError",
    "SynthesisError",
    "call_with_retry",
    "configure_logging",
    "get_logger",
    "map_bounded",
]
