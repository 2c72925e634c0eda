"""Custom exception hierarchy for docqa.

All application exceptions inherit from :class:`DocQAError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "openai", "tesseract", "chromadb") caused the failure.

The hierarchy is organized by pipeline stage:

    DocQAError  (base -- catch-all for any docqa error)
    +-- QuotaExceededError         (per-user usage ceiling reached)
    +-- ImageBasedUnsupportedError (scanned PDF while OCR is disabled)
    +-- ExtractionFailedError      (no usable text from any strategy)
    +-- EmbeddingFailedError       (embedding call failed or short vector)
    +-- ProviderTimeoutError       (embedding / synthesis call timed out)
    +-- RateLimitError             (provider rate-limit, transient)
    +-- SynthesisError             (answer generation failed)
    +-- IndexWriteFailedError      (vector-store batch upsert failed)
    +-- PartiallyIndexedError      (document stored, vectors incomplete)
    +-- DocumentNotFoundError      (unknown document for this owner)
    +-- ConfigurationError         (startup / missing config)

``QuotaExceededError`` is an expected, user-facing outcome and is never
logged as a system error.  Callers retry on ``ProviderTimeoutError`` and
``RateLimitError`` only; quota and extraction failures reflect input or
policy state and are surfaced immediately.
"""


class DocQAError(Exception):
    """Base exception for all docqa errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Quota
# ---------------------------------------------------------------------------

class QuotaExceededError(DocQAError):
    """Raised when a free-tier user has reached the ceiling for a counter.

    The counter is left untouched.  The API layer maps this to a distinct
    "limit reached" response rather than a generic failure.
    """

    def __init__(
        self,
        message: str = "Usage limit reached",
        counter: str = "",
        limit: int = 0,
    ) -> None:
        super().__init__(message=message)
        self.counter = counter
        self.limit = limit


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class ExtractionFailedError(DocQAError):
    """Raised when neither text extraction strategy yields usable text."""

    def __init__(
        self,
        message: str = "Failed to extract text from document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ImageBasedUnsupportedError(DocQAError):
    """Raised when a document looks image-based and OCR is disabled."""

    def __init__(
        self,
        message: str = "Document appears to be image-based and OCR processing is disabled",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Capability providers
# ---------------------------------------------------------------------------

class EmbeddingFailedError(DocQAError):
    """Raised when an embedding call fails or returns too few dimensions."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderTimeoutError(DocQAError):
    """Raised when an embedding or synthesis call exceeds its time budget."""

    def __init__(
        self,
        message: str = "Provider call timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(DocQAError):
    """Raised when a provider rejects a call with a rate-limit response.

    Transient: callers back off and retry a bounded number of times.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SynthesisError(DocQAError):
    """Raised when the answer synthesizer's LLM call fails."""

    def __init__(
        self,
        message: str = "Answer generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Vector index
# ---------------------------------------------------------------------------

class IndexWriteFailedError(DocQAError):
    """Raised when a vector-store upsert batch is not acknowledged.

    ``committed_batches`` counts the batches acknowledged before the
    failure; ``failed_batch`` is the zero-based index of the batch that
    failed.  Batches after ``failed_batch`` were not attempted.
    """

    def __init__(
        self,
        message: str = "Vector index write failed",
        provider_name: str | None = None,
        committed_batches: int = 0,
        failed_batch: int = 0,
        total_batches: int = 0,
        committed_points: int = 0,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.committed_batches = committed_batches
        self.failed_batch = failed_batch
        self.total_batches = total_batches
        self.committed_points = committed_points


class PartiallyIndexedError(DocQAError):
    """Raised when a document was stored but its vectors are incomplete.

    The document row is kept so the consumed upload is not lost; the
    caller can retry indexing with ``IngestionService.reindex``.
    """

    def __init__(
        self,
        message: str = "Document stored but not fully searchable",
        document_id: int = 0,
        indexed_chunks: int = 0,
        total_chunks: int = 0,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.document_id = document_id
        self.indexed_chunks = indexed_chunks
        self.total_chunks = total_chunks


# ---------------------------------------------------------------------------
# Lookup / configuration
# ---------------------------------------------------------------------------

class DocumentNotFoundError(DocQAError):
    """Raised when a document id does not exist for the requesting owner."""

    def __init__(
        self,
        message: str = "Document not found",
        document_id: int | None = None,
    ) -> None:
        super().__init__(message=message)
        self.document_id = document_id


class ConfigurationError(DocQAError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
