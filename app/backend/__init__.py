"""
Spec Review Backend Application.

A FastAPI service that extracts text from specification documents
(PDF, scanned PDF via OCR, DOCX, plain text) and uses an LLM to extract
structured engineering requirement records.
"""

__version__ = "1.0.0"
