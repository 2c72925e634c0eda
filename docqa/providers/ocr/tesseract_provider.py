"""Tesseract OCR provider for scanned PDF documents.

Each page is rendered to a bitmap with PyMuPDF, handed to Tesseract via
pytesseract, and the page texts are joined with blank lines.  Both
libraries are blocking, so the whole document is processed on a
dedicated single-thread worker that is acquired and released per call.
"""

from __future__ import annotations

import asyncio
import io
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from docqa.interfaces.ocr_provider import IOCRProvider
from docqa.utils.errors import ExtractionFailedError
from docqa.utils.logging import get_logger

_DEFAULT_DPI = 200


class TesseractOCRProvider(IOCRProvider):
    """OCR provider backed by Google Tesseract via pytesseract."""

    def __init__(self, language: str = "eng", dpi: int = _DEFAULT_DPI) -> None:
        self._language = language
        self._dpi = dpi
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IOCRProvider interface
    # ------------------------------------------------------------------

    async def extract_text(self, pdf_bytes: bytes) -> str:
        """OCR every page of the PDF and return the combined text."""
        start = time.perf_counter()
        loop = asyncio.get_running_loop()
        try:
            with self._ocr_worker() as worker:
                text = await loop.run_in_executor(worker, self._ocr_document, pdf_bytes)
        except ExtractionFailedError:
            raise
        except Exception as exc:
            self._logger.error(
                "ocr_extraction_failed",
                provider="tesseract",
                error=str(exc),
                processing_time=round(time.perf_counter() - start, 3),
            )
            raise ExtractionFailedError(
                f"Tesseract OCR failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        self._logger.info(
            "ocr_extraction_complete",
            provider="tesseract",
            text_length=len(text),
            processing_time=round(time.perf_counter() - start, 3),
        )
        return text

    def get_provider_name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        """Check that the Tesseract binary is installed."""
        try:
            pytesseract.get_tesseract_version()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _ocr_worker(self) -> Iterator[ThreadPoolExecutor]:
        """Yield a one-thread executor and always shut it down.

        ``wait=False`` keeps a cancelled caller from blocking the event
        loop on a page that is still being recognised.
        """
        worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docqa-ocr")
        self._logger.debug("ocr_worker_acquired")
        try:
            yield worker
        finally:
            worker.shutdown(wait=False, cancel_futures=True)
            self._logger.debug("ocr_worker_released")

    def _ocr_document(self, pdf_bytes: bytes) -> str:
        """Render and recognise each page.  Runs on the OCR worker thread."""
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as exc:
            raise ExtractionFailedError(
                f"Cannot render document for OCR: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        page_texts: list[str] = []
        try:
            for page in doc:
                pixmap = page.get_pixmap(dpi=self._dpi)
                image = Image.open(io.BytesIO(pixmap.tobytes("png")))
                text = pytesseract.image_to_string(image, lang=self._language).strip()
                if text:
                    page_texts.append(text)
        finally:
            doc.close()

        return "\n\n".join(page_texts)
