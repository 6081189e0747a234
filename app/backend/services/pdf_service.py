"""
PDF processing service.

Reads the embedded text layer with pypdf and rasterizes pages with
pdf2image (poppler) for OCR engines that need images.
"""

import io
import logging

from PIL import Image

logger = logging.getLogger(__name__)


class PDFParseError(Exception):
    """Raised when the PDF text layer cannot be read."""

    pass


class PDFConversionError(Exception):
    """Raised when PDF to image conversion fails."""

    pass


def _check_pdf_bytes(pdf_bytes: bytes, error_cls: type[Exception]) -> None:
    if not pdf_bytes:
        raise error_cls("Empty PDF file provided")
    if not pdf_bytes[:4] == b"%PDF":
        raise error_cls("Invalid PDF file: does not start with PDF header")


class PDFService:
    """
    Service for PDF processing operations.

    Text extraction uses pypdf. Page rasterization uses pdf2image
    (backed by poppler) and is only needed by the local OCR fallback.
    """

    def __init__(self, dpi: int = 300, image_format: str = "PNG"):
        """
        Initialize the PDF service.

        Args:
            dpi: Resolution for PDF to image conversion. OCR accuracy drops below ~200.
            image_format: Output image format (PNG recommended for quality).
        """
        self.dpi = dpi
        self.image_format = image_format

    def extract_text(self, pdf_bytes: bytes) -> str:
        """
        Extract the embedded text of every page.

        Scanned PDFs have no text layer and yield an empty or near-empty
        string; callers decide whether to fall back to OCR.

        Args:
            pdf_bytes: PDF file contents.

        Returns:
            Page texts joined by blank lines.

        Raises:
            PDFParseError: If the file is not a readable PDF.
        """
        _check_pdf_bytes(pdf_bytes, PDFParseError)

        from pypdf import PdfReader
        from pypdf.errors import PdfReadError

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            pages_text = []
            for page in reader.pages:
                page_text = page.extract_text()
                if page_text:
                    pages_text.append(page_text)
        except PdfReadError as e:
            logger.error("PDF read error: %s", e)
            raise PDFParseError(f"Invalid or corrupted PDF file: {e}") from e
        except Exception as e:
            logger.exception("Unexpected error during PDF text extraction")
            raise PDFParseError(f"PDF text extraction failed: {e}") from e

        text = "\n\n".join(pages_text)
        logger.info(
            "Extracted %d chars from %d page(s)", len(text), len(reader.pages)
        )
        return text

    def get_page_count(self, pdf_bytes: bytes) -> int:
        """
        Get the total number of pages in a PDF.

        Raises:
            PDFParseError: If the page count cannot be determined.
        """
        _check_pdf_bytes(pdf_bytes, PDFParseError)

        from pypdf import PdfReader

        try:
            return len(PdfReader(io.BytesIO(pdf_bytes)).pages)
        except Exception as e:
            logger.error("Could not get page count: %s", e)
            raise PDFParseError(f"Could not get page count: {e}") from e

    def convert_pdf_to_images(
        self,
        pdf_bytes: bytes,
        first_page: int | None = None,
        last_page: int | None = None,
    ) -> list[Image.Image]:
        """
        Convert PDF pages to PIL Images.

        Args:
            pdf_bytes: PDF file contents.
            first_page: First page to convert (1-indexed, inclusive). None for first page.
            last_page: Last page to convert (1-indexed, inclusive). None for last page.

        Returns:
            List of PIL Image objects, one per page.

        Raises:
            PDFConversionError: If conversion fails for any reason.
        """
        _check_pdf_bytes(pdf_bytes, PDFConversionError)

        from pdf2image import convert_from_bytes
        from pdf2image.exceptions import (
            PDFInfoNotInstalledError,
            PDFPageCountError,
            PDFSyntaxError,
        )

        try:
            logger.info(
                "Converting PDF to images (dpi=%d, pages=%s-%s)",
                self.dpi,
                first_page or "first",
                last_page or "last",
            )
            images = convert_from_bytes(
                pdf_bytes,
                dpi=self.dpi,
                fmt=self.image_format.lower(),
                first_page=first_page,
                last_page=last_page,
                thread_count=2,
            )
            logger.info("Successfully converted %d page(s)", len(images))
            return images

        except PDFInfoNotInstalledError as e:
            logger.error("Poppler not installed: %s", e)
            raise PDFConversionError(
                "Poppler not installed. Install poppler-utils: "
                "brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            ) from e

        except PDFPageCountError as e:
            logger.error("Could not get PDF page count: %s", e)
            raise PDFConversionError(
                f"Could not determine PDF page count: {e}"
            ) from e

        except PDFSyntaxError as e:
            logger.error("PDF syntax error: %s", e)
            raise PDFConversionError(f"Invalid or corrupted PDF file: {e}") from e

        except Exception as e:
            logger.exception("Unexpected error during PDF conversion")
            raise PDFConversionError(f"PDF conversion failed: {e}") from e


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        _pdf_service = PDFService()
    return _pdf_service
