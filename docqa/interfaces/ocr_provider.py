"""Abstract base class for OCR service providers.

The text extractor falls back to OCR when structural PDF extraction
yields too little text, i.e. for scanned documents.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: TesseractOCRProvider (docqa/providers/ocr/)
class IOCRProvider(ABC):
    """Contract for OCR engines that read text from rendered PDF pages."""

    @abstractmethod
    async def extract_text(self, pdf_bytes: bytes) -> str:
        """Render every page of *pdf_bytes* and return the recognised text.

        Raises
        ------
        docqa.utils.errors.ExtractionFailedError
            If the document cannot be rendered or the OCR engine fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"tesseract"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the engine's binaries and bindings are installed."""
