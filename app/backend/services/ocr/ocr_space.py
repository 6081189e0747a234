"""
OCR.space client.

The PDF is uploaded inline as a base64 data URI, which avoids OCR.space
having to fetch a remote URL that may be access-restricted.
"""

import base64
import logging

import httpx

# Handle both package imports and standalone imports
try:
    from ...models import ExtractionMethod
except ImportError:
    from models import ExtractionMethod

from .exceptions import OCRError

logger = logging.getLogger(__name__)


class OCRSpaceClient:
    """OCR engine backed by the OCR.space parse API."""

    name = "OCR.SPACE"
    method = ExtractionMethod.OCR_SPACE

    def __init__(self, client: httpx.AsyncClient, api_key: str, url: str):
        self.client = client
        self.api_key = api_key
        self.url = url

    async def recognize(
        self, pdf_bytes: bytes, file_name: str, diagnostics: list[str]
    ) -> str:
        """
        Submit a PDF and return the parsed text of all its pages.

        Raises:
            OCRError: On transport errors, non-JSON replies or
                processing errors reported by OCR.space.
        """
        encoded = base64.b64encode(pdf_bytes).decode("ascii")
        form = {
            "base64Image": f"data:application/pdf;base64,{encoded}",
            "filetype": "PDF",
            "isCreateSearchablePdf": "false",
            "isTable": "false",
            "OCREngine": "2",
        }
        logger.info("OCR.space starting for %s", file_name)

        try:
            response = await self.client.post(
                self.url,
                headers={"apikey": self.api_key},
                data=form,
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise OCRError(str(e)) from e

        if not isinstance(payload, dict):
            raise OCRError(f"unexpected response: {str(payload)[:200]}")

        parsed_results = payload.get("ParsedResults") or []
        if not isinstance(parsed_results, list):
            raise OCRError(f"unexpected ParsedResults: {str(parsed_results)[:200]}")
        if not parsed_results and payload.get("IsErroredOnProcessing"):
            message = payload.get("ErrorMessage") or "processing error"
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            raise OCRError(str(message))

        return "\n".join(
            str(r.get("ParsedText") or "")
            for r in parsed_results
            if isinstance(r, dict)
        )
