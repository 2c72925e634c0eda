"""PDF text extraction with an OCR fallback for image-based documents.

Strategy:

1. **Structural extraction** -- PyMuPDF reads the text layer page by page.
2. **OCR fallback** -- when the stripped text layer is shorter than
   ``min_text_length`` characters (50 by default) the document is presumed
   to be scanned, and the injected :class:`IOCRProvider` reads rendered
   page images instead.  Corrupt PDFs that PyMuPDF cannot parse also fall
   back to OCR.

OCR can be switched off (``OCR_ENABLED=false``), e.g. on hosts without
the Tesseract binary.  Then a scanned document fails with
:class:`ImageBasedUnsupportedError` and a corrupt one with
:class:`ExtractionFailedError`.
"""

from __future__ import annotations

import asyncio

import fitz  # PyMuPDF
import structlog

from docqa.interfaces.ocr_provider import IOCRProvider
from docqa.utils.errors import ExtractionFailedError, ImageBasedUnsupportedError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MIN_TEXT_LENGTH = 50


class TextExtractor:
    """Turns raw PDF bytes into plain text.

    Parameters
    ----------
    ocr_provider:
        Secondary strategy for image-based pages.  May be ``None`` when
        OCR is disabled.
    ocr_enabled:
        Whether the OCR fallback may be used.
    min_text_length:
        Minimum stripped length for extracted text to count as usable.
    """

    def __init__(
        self,
        ocr_provider: IOCRProvider | None = None,
        ocr_enabled: bool = True,
        min_text_length: int = _DEFAULT_MIN_TEXT_LENGTH,
    ) -> None:
        self._ocr_provider = ocr_provider
        self._ocr_enabled = ocr_enabled and ocr_provider is not None
        self._min_text_length = min_text_length

    @property
    def ocr_enabled(self) -> bool:
        return self._ocr_enabled

    async def extract(self, data: bytes) -> str:
        """Extract plain text from *data*.

        Raises
        ------
        ImageBasedUnsupportedError
            Text layer too short and OCR disabled.
        ExtractionFailedError
            The document is unreadable, or OCR also produced too little text.
        """
        if not data:
            raise ExtractionFailedError(message="Empty document")

        try:
            text = await asyncio.to_thread(self._extract_text_layer, data)
        except Exception as exc:
            logger.warning("pdf_text_layer_failed", error=str(exc), size_bytes=len(data))
            if not self._ocr_enabled:
                raise ExtractionFailedError(
                    message=f"Failed to read PDF: {exc}",
                    provider_name="pymupdf",
                ) from exc
            return await self._extract_with_ocr(data, reason="text_layer_failed")

        if len(text) >= self._min_text_length:
            logger.info("pdf_text_extracted", strategy="text_layer", text_length=len(text))
            return text

        if not self._ocr_enabled:
            logger.info(
                "pdf_image_based_rejected",
                text_length=len(text),
                min_text_length=self._min_text_length,
            )
            raise ImageBasedUnsupportedError()

        return await self._extract_with_ocr(data, reason="text_layer_too_short")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _extract_with_ocr(self, data: bytes, reason: str) -> str:
        provider = self._ocr_provider
        if provider is None:
            raise ExtractionFailedError(message="OCR fallback requested but no OCR provider is configured")
        logger.info("pdf_ocr_fallback", reason=reason, provider=provider.get_provider_name())

        text = (await provider.extract_text(data)).strip()
        if len(text) < self._min_text_length:
            raise ExtractionFailedError(
                message=(
                    f"OCR produced {len(text)} characters; "
                    f"at least {self._min_text_length} required"
                ),
                provider_name=provider.get_provider_name(),
            )

        logger.info("pdf_text_extracted", strategy="ocr", text_length=len(text))
        return text

    @staticmethod
    def _extract_text_layer(data: bytes) -> str:
        """Read the embedded text layer of every page, joined by newlines."""
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            pages = [page.get_text("text") for page in doc]
        finally:
            doc.close()
        return "\n".join(pages).strip()
