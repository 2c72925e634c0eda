"""Unit tests for TesseractOCRProvider with pytesseract patched out."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import pytesseract

from docqa.providers.ocr.tesseract_provider import TesseractOCRProvider
from docqa.utils.errors import ExtractionFailedError


class TestTesseractOCRProvider:
    def test_provider_name(self) -> None:
        assert TesseractOCRProvider().get_provider_name() == "tesseract"

    def test_is_available_when_binary_missing(self) -> None:
        with patch(
            "docqa.providers.ocr.tesseract_provider.pytesseract.get_tesseract_version",
            side_effect=pytesseract.TesseractNotFoundError(),
        ):
            assert TesseractOCRProvider().is_available() is False

    async def test_pages_are_rendered_and_joined(self, pdf_factory) -> None:
        pdf = pdf_factory("\n".join(f"row {n}" for n in range(120)))  # three pages
        with patch(
            "docqa.providers.ocr.tesseract_provider.pytesseract.image_to_string",
            side_effect=["page one", "  ", "page three"],
        ) as mock_ocr:
            text = await TesseractOCRProvider(dpi=72).extract_text(pdf)

        assert mock_ocr.call_count == 3
        assert mock_ocr.call_args.kwargs["lang"] == "eng"
        # Blank pages are skipped.
        assert text == "page one\n\npage three"

    async def test_unrenderable_document(self) -> None:
        with pytest.raises(ExtractionFailedError) as exc_info:
            await TesseractOCRProvider().extract_text(b"not a pdf at all")
        assert exc_info.value.provider_name == "tesseract"

    async def test_engine_failure_wrapped(self, scanned_pdf) -> None:
        with patch(
            "docqa.providers.ocr.tesseract_provider.pytesseract.image_to_string",
            side_effect=pytesseract.TesseractError(1, "engine crashed"),
        ):
            with pytest.raises(ExtractionFailedError, match="Tesseract OCR failed"):
                await TesseractOCRProvider(dpi=72).extract_text(scanned_pdf)
