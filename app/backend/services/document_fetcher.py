"""
Remote file retrieval over HTTP.

Downloads the documents referenced in a review request using a shared
``httpx.AsyncClient``.
"""

import logging
from dataclasses import dataclass

import httpx

# Handle both package imports and standalone imports
try:
    from ..config import Settings
    from ..models import FileReference
except ImportError:
    from config import Settings
    from models import FileReference

logger = logging.getLogger(__name__)


class DocumentFetchError(Exception):
    """Raised when a referenced file cannot be downloaded."""

    pass


@dataclass
class FetchedFile:
    """Raw bytes of a downloaded file plus its reported content type."""

    name: str
    content_type: str
    content: bytes


class DocumentFetcher:
    """Fetches referenced files with an injected HTTP client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, file_ref: FileReference) -> FetchedFile:
        """
        Download a single file.

        Args:
            file_ref: Name and URL of the file.

        Returns:
            FetchedFile with the body and content type.

        Raises:
            DocumentFetchError: On transport errors or non-2xx responses.
        """
        logger.info("Fetching %s from %s", file_ref.name, file_ref.url)
        try:
            response = await self.client.get(file_ref.url)
        except httpx.HTTPError as e:
            raise DocumentFetchError(f"fetch {file_ref.name} -> {e}") from e

        if not response.is_success:
            raise DocumentFetchError(
                f"fetch {file_ref.name} -> {response.status_code}"
            )

        content = response.content
        logger.info("Fetched %s (%d bytes)", file_ref.name, len(content))
        return FetchedFile(
            name=file_ref.name,
            content_type=response.headers.get("content-type", ""),
            content=content,
        )


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the outbound HTTP client used for one request."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        follow_redirects=True,
    )
