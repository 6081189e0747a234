"""
Services package for the spec review application.

Contains:
- document_fetcher: HTTP retrieval of referenced files
- pdf_service: PDF text layer and page rasterization
- text_extraction: File-type dispatch and the OCR fallback chain
- ocr: Azure Read, OCR.space and Tesseract engines
- ai: LLM requirement extraction
"""

from .ai import AIService
from .pdf_service import PDFService
from .text_extraction import TextExtractionService

__all__ = ["AIService", "PDFService", "TextExtractionService"]
