"""
OCR engines used when a PDF has no usable text layer.

Engines are tried in order by the text extraction service:
- azure_read: Azure Computer Vision Read API (when configured)
- ocr_space: OCR.space parse API
- tesseract: local pytesseract over pdf2image pages (when enabled)
"""

from .azure_read import AzureReadClient, text_from_read_result
from .exceptions import OCRError
from .ocr_space import OCRSpaceClient
from .tesseract import TesseractOCR

__all__ = [
    "AzureReadClient",
    "OCRError",
    "OCRSpaceClient",
    "TesseractOCR",
    "text_from_read_result",
]
