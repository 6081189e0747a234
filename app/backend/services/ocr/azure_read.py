"""
Azure Computer Vision Read API (v3.2) client.

The Read API is asynchronous: the PDF is submitted to ``/read/analyze``,
the response carries an ``Operation-Location`` header, and the result is
polled at a fixed interval until it succeeds, fails, or the attempt
ceiling is reached.
"""

import asyncio
import logging
from typing import Any

import httpx

# Handle both package imports and standalone imports
try:
    from ...models import ExtractionMethod
except ImportError:
    from models import ExtractionMethod

from .exceptions import OCRError

logger = logging.getLogger(__name__)

READ_API_PATH = "/vision/v3.2/read/analyze"


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _poll_status(payload: dict[str, Any]) -> str | None:
    payload = _as_dict(payload)
    analyze_result = _as_dict(payload.get("analyzeResult"))
    return (
        payload.get("status")
        or payload.get("statusCode")
        or analyze_result.get("status")
    )


def text_from_read_result(payload: dict[str, Any]) -> str:
    """
    Join the recognised lines of a succeeded Read operation.

    Lines come from ``analyzeResult.readResults`` (v3.x) or
    ``analyzeResult.pages`` (v4); ``analyzeResult.content`` is used when
    neither carries lines. Malformed pages and lines are skipped.
    """
    analyze_result = _as_dict(_as_dict(payload).get("analyzeResult"))
    pages = analyze_result.get("readResults") or analyze_result.get("pages") or []
    if not isinstance(pages, list):
        pages = []
    lines = [
        _as_dict(line)
        for page in pages
        for line in (_as_dict(page).get("lines") or [])
    ]
    if lines:
        return "\n".join(str(line.get("text") or "") for line in lines)
    return str(analyze_result.get("content") or "")


class AzureReadClient:
    """OCR engine backed by the Azure Computer Vision Read API."""

    name = "AZURE"
    method = ExtractionMethod.OCR_AZURE

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        api_key: str,
        poll_interval: float = 1.0,
        max_attempts: int = 30,
    ):
        self.client = client
        self.analyze_url = endpoint.rstrip("/") + READ_API_PATH
        self.api_key = api_key
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

    async def recognize(
        self, pdf_bytes: bytes, file_name: str, diagnostics: list[str]
    ) -> str:
        """
        Run the Read operation on a PDF and wait for its result.

        Returns:
            Recognised text, or an empty string if the operation failed or
            did not finish within the attempt ceiling.

        Raises:
            OCRError: If the operation cannot be started or polled.
        """
        diagnostics.append(f"AZURE: start for {file_name} ({len(pdf_bytes)} bytes)")
        logger.info("Azure OCR starting for %s (%d bytes)", file_name, len(pdf_bytes))

        try:
            analyze_res = await self.client.post(
                self.analyze_url,
                headers={
                    "Ocp-Apim-Subscription-Key": self.api_key,
                    "Content-Type": "application/octet-stream",
                },
                content=pdf_bytes,
            )
        except httpx.HTTPError as e:
            raise OCRError(f"Azure analyze request failed: {e}") from e

        if not analyze_res.is_success:
            diagnostics.append(f"AZURE: analyze HTTP {analyze_res.status_code}")
            raise OCRError(f"Azure analyze status {analyze_res.status_code}")

        operation_url = analyze_res.headers.get("operation-location")
        if not operation_url:
            diagnostics.append("AZURE: operation-location header missing")
            raise OCRError("Azure operation-location header missing")

        for attempt in range(self.max_attempts):
            await asyncio.sleep(self.poll_interval)
            try:
                poll_res = await self.client.get(
                    operation_url,
                    headers={"Ocp-Apim-Subscription-Key": self.api_key},
                )
                payload = poll_res.json()
            except (httpx.HTTPError, ValueError) as e:
                raise OCRError(f"Azure poll failed: {e}") from e
            if not isinstance(payload, dict):
                raise OCRError(
                    f"Azure poll returned unexpected body: {str(payload)[:200]}"
                )

            status = _poll_status(payload)
            logger.debug("Azure OCR poll %d: %s", attempt, status)
            if attempt == 0:
                diagnostics.append(f"AZURE: first poll status {status}")

            if status == "succeeded":
                return text_from_read_result(payload)
            if status == "failed":
                logger.warning("Azure OCR operation failed for %s", file_name)
                return ""

        logger.warning(
            "Azure OCR did not finish within %d polls for %s",
            self.max_attempts,
            file_name,
        )
        return ""
