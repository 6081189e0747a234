"""
Shared exceptions for OCR engines.
"""


class OCRError(Exception):
    """Raised when an OCR engine cannot produce text."""

    pass
