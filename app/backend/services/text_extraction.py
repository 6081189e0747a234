"""
Text extraction for fetched documents.

Chooses an extractor from the content type and filename:
- PDF: embedded text layer, then the OCR fallback chain when the text
  layer is insufficient (scanned or image-only PDFs)
- DOCX: paragraphs and table cells via python-docx
- Text-like files: UTF-8 decoding
- Anything else: a placeholder naming the unsupported type

Failures are recorded in the caller's diagnostics list; extraction never
raises for a single bad file.
"""

import io
import logging
import re
from enum import Enum

import httpx

# Handle both package imports and standalone imports
try:
    from ..config import Settings
    from ..models import ExtractedDocument, ExtractionMethod, FileReference
except ImportError:
    from config import Settings
    from models import ExtractedDocument, ExtractionMethod, FileReference

from .document_fetcher import DocumentFetcher, FetchedFile
from .ocr import AzureReadClient, OCRError, OCRSpaceClient, TesseractOCR
from .pdf_service import PDFParseError, PDFService, get_pdf_service

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS_RE = re.compile(
    r"\.(txt|md|csv|json|yaml|yml|xml|ini|cfg|py|js|ts|java|cs|cpp|c|go|rb|rs|html|css)$",
    re.IGNORECASE,
)


class DocumentKind(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    TEXT = "text"
    UNSUPPORTED = "unsupported"


def detect_kind(file_name: str, content_type: str) -> DocumentKind:
    """Classify a file by content type first, then by extension."""
    content_type = (content_type or "").lower()
    lower_name = file_name.lower()
    if "pdf" in content_type or lower_name.endswith(".pdf"):
        return DocumentKind.PDF
    if "officedocument.wordprocessingml" in content_type or lower_name.endswith(".docx"):
        return DocumentKind.DOCX
    if content_type.startswith("text/") or TEXT_EXTENSIONS_RE.search(file_name):
        return DocumentKind.TEXT
    return DocumentKind.UNSUPPORTED


def extract_docx_text(content: bytes) -> str:
    """Extract paragraph and table text from a .docx file."""
    from docx import Document

    document = Document(io.BytesIO(content))
    parts = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


class TextExtractionService:
    """
    Fetches referenced files and turns them into plain text.

    Args:
        client: HTTP client shared by the fetcher and the remote OCR engines.
        settings: Text limits and OCR configuration.
        pdf_service: PDF helper; defaults to the module singleton.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        pdf_service: PDFService | None = None,
    ):
        self.settings = settings
        self.fetcher = DocumentFetcher(client)
        self.pdf_service = pdf_service or get_pdf_service()
        self.ocr_engines = self._build_ocr_engines(client)

    def _build_ocr_engines(self, client: httpx.AsyncClient) -> list:
        settings = self.settings
        engines: list = []
        if settings.azure_configured:
            engines.append(
                AzureReadClient(
                    client,
                    endpoint=settings.azure_cv_endpoint,
                    api_key=settings.azure_cv_key,
                    poll_interval=settings.azure_poll_interval_seconds,
                    max_attempts=settings.azure_poll_max_attempts,
                )
            )
        engines.append(
            OCRSpaceClient(
                client,
                api_key=settings.ocr_space_api_key,
                url=settings.ocr_space_url,
            )
        )
        if settings.tesseract_enabled:
            engines.append(
                TesseractOCR(self.pdf_service, language=settings.tesseract_language)
            )
        return engines

    def _is_sufficient(self, text: str) -> bool:
        return len(text.strip()) >= self.settings.min_text_chars

    async def extract_all(
        self, files: list[FileReference], diagnostics: list[str]
    ) -> list[ExtractedDocument]:
        """Extract every file in order. One document is returned per file."""
        documents = []
        for file_ref in files:
            documents.append(await self.extract(file_ref, diagnostics))
        return documents

    async def extract(
        self, file_ref: FileReference, diagnostics: list[str]
    ) -> ExtractedDocument:
        """
        Fetch one file and extract its text.

        Any failure yields a placeholder document whose text names the error.
        """
        try:
            fetched = await self.fetcher.fetch(file_ref)
            document = await self.extract_fetched(fetched, diagnostics)
        except Exception as e:
            logger.warning("Failed to load %s: %s", file_ref.name, e)
            diagnostics.append(f"FETCH ERROR for {file_ref.name} - {e}")
            return ExtractedDocument(
                name=file_ref.name,
                text=f"Failed to load {file_ref.name}: {e}",
                method=ExtractionMethod.ERROR,
            )

        max_chars = self.settings.max_document_chars
        if len(document.text) > max_chars:
            logger.info(
                "Truncating %s from %d to %d chars",
                document.name,
                len(document.text),
                max_chars,
            )
            document.text = document.text[:max_chars]

        if not self._is_sufficient(document.text):
            diagnostics.append(f"EMPTY TEXT after all attempts for {document.name}")
        return document

    async def extract_fetched(
        self, fetched: FetchedFile, diagnostics: list[str]
    ) -> ExtractedDocument:
        kind = detect_kind(fetched.name, fetched.content_type)
        logger.info("Extracting %s as %s", fetched.name, kind.value)

        if kind == DocumentKind.PDF:
            return await self._extract_pdf(fetched, diagnostics)

        if kind == DocumentKind.DOCX:
            return ExtractedDocument(
                name=fetched.name,
                text=extract_docx_text(fetched.content),
                method=ExtractionMethod.DOCX,
            )

        if kind == DocumentKind.TEXT:
            return ExtractedDocument(
                name=fetched.name,
                text=fetched.content.decode("utf-8", errors="replace"),
                method=ExtractionMethod.TEXT,
            )

        return ExtractedDocument(
            name=fetched.name,
            text=(
                f"Unsupported file type for {fetched.name}. "
                f"Content-type: {fetched.content_type}"
            ),
            method=ExtractionMethod.UNSUPPORTED,
        )

    async def _extract_pdf(
        self, fetched: FetchedFile, diagnostics: list[str]
    ) -> ExtractedDocument:
        try:
            text = self.pdf_service.extract_text(fetched.content)
        except PDFParseError as e:
            diagnostics.append(f"PDF-PARSE: failed - {e}")
            text = ""

        if self._is_sufficient(text):
            return ExtractedDocument(
                name=fetched.name, text=text, method=ExtractionMethod.PDF
            )

        logger.info(
            "PDF text layer insufficient for %s (%d chars), trying OCR",
            fetched.name,
            len(text.strip()),
        )
        for engine in self.ocr_engines:
            try:
                ocr_text = await engine.recognize(
                    fetched.content, fetched.name, diagnostics
                )
            except OCRError as e:
                diagnostics.append(f"{engine.name}: failed - {e}")
                logger.warning("%s OCR failed for %s: %s", engine.name, fetched.name, e)
                continue
            except Exception as e:
                diagnostics.append(f"{engine.name}: failed - {e}")
                logger.exception(
                    "Unexpected %s OCR error for %s", engine.name, fetched.name
                )
                continue

            if len(ocr_text.strip()) > self.settings.min_text_chars:
                diagnostics.append(f"{engine.name}: success, {len(ocr_text)} chars")
                logger.info(
                    "%s OCR succeeded for %s (%d chars)",
                    engine.name,
                    fetched.name,
                    len(ocr_text),
                )
                return ExtractedDocument(
                    name=fetched.name, text=ocr_text, method=engine.method
                )

        return ExtractedDocument(
            name=fetched.name, text=text, method=ExtractionMethod.PDF
        )
