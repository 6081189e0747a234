"""
Local OCR with Tesseract.

Pages are rasterized with pdf2image and recognised one at a time with
pytesseract. Requires the poppler and tesseract binaries on the host.
"""

import asyncio
import logging

# Handle both package imports and standalone imports
try:
    from ...models import ExtractionMethod
    from ..pdf_service import PDFConversionError, PDFParseError, PDFService
except ImportError:
    from models import ExtractionMethod
    from services.pdf_service import PDFConversionError, PDFParseError, PDFService

from .exceptions import OCRError

logger = logging.getLogger(__name__)


class TesseractOCR:
    """OCR engine running pytesseract over rasterized PDF pages."""

    name = "TESSERACT"
    method = ExtractionMethod.OCR_TESSERACT

    def __init__(self, pdf_service: PDFService, language: str = "eng"):
        self.pdf_service = pdf_service
        self.language = language

    def _recognize_sync(self, pdf_bytes: bytes) -> str:
        try:
            import pytesseract
        except ImportError as e:
            raise OCRError(
                "pytesseract not installed. Install with: pip install pytesseract"
            ) from e

        try:
            page_count = self.pdf_service.get_page_count(pdf_bytes)
        except PDFParseError as e:
            raise OCRError(str(e)) from e
        logger.info("Tesseract OCR over %d page(s)", page_count)

        # One page in memory at a time
        page_texts = []
        for page_num in range(1, page_count + 1):
            try:
                images = self.pdf_service.convert_pdf_to_images(
                    pdf_bytes, first_page=page_num, last_page=page_num
                )
            except PDFConversionError as e:
                raise OCRError(str(e)) from e

            for image in images:
                try:
                    page_texts.append(
                        pytesseract.image_to_string(image, lang=self.language)
                    )
                except Exception as e:
                    raise OCRError(f"page {page_num}: {e}") from e
        return "\n\n".join(t.strip() for t in page_texts if t.strip())

    async def recognize(
        self, pdf_bytes: bytes, file_name: str, diagnostics: list[str]
    ) -> str:
        logger.info("Tesseract OCR starting for %s", file_name)
        return await asyncio.to_thread(self._recognize_sync, pdf_bytes)
