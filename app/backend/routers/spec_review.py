"""
Router for the specification review endpoint.

Handles:
- Configuration check (``test: true``)
- Fetching and text extraction of referenced documents
- Requirement extraction through the AI service
"""

import json
import logging
from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

# Handle both package imports and standalone imports
try:
    from ..config import Settings, get_settings
    from ..models import (
        ConfigCheckResponse,
        ErrorResponse,
        ExtractedDocument,
        ExtractionMethod,
        SpecReviewRequest,
        SpecReviewResponse,
    )
    from ..services.ai import AIService, AIServiceError, get_ai_service
    from ..services.document_fetcher import build_http_client
    from ..services.text_extraction import TextExtractionService
except ImportError:
    from config import Settings, get_settings
    from models import (
        ConfigCheckResponse,
        ErrorResponse,
        ExtractedDocument,
        ExtractionMethod,
        SpecReviewRequest,
        SpecReviewResponse,
    )
    from services.ai import AIService, AIServiceError, get_ai_service
    from services.document_fetcher import build_http_client
    from services.text_extraction import TextExtractionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["spec-review"])


class SpecReviewError(Exception):
    """Request-level failure rendered as an ErrorResponse."""

    def __init__(
        self,
        status_code: int,
        error: str,
        details: str | None = None,
        diagnostics: list[str] | None = None,
    ):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details
        self.diagnostics = diagnostics or []

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.error,
            details=self.details,
            diagnostics=self.diagnostics,
        )


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    """Outbound HTTP client scoped to one request."""
    async with build_http_client(settings) as client:
        yield client


async def _parse_request(request: Request) -> SpecReviewRequest:
    body = await request.body()
    try:
        payload = json.loads(body) if body.strip() else {}
    except json.JSONDecodeError as e:
        raise SpecReviewError(
            status.HTTP_400_BAD_REQUEST, f"Invalid JSON body: {e}"
        )
    if not isinstance(payload, dict):
        raise SpecReviewError(
            status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object"
        )
    try:
        return SpecReviewRequest.model_validate(payload)
    except ValidationError as e:
        raise SpecReviewError(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            details=str(e),
        )


def select_documents(
    documents: list[ExtractedDocument],
    settings: Settings,
    diagnostics: list[str],
) -> list[ExtractedDocument]:
    """Pick the documents sent to the LLM, in request order."""
    selected = []
    for document in documents:
        if len(selected) >= settings.max_documents_analyzed:
            break
        if document.method in (ExtractionMethod.ERROR, ExtractionMethod.UNSUPPORTED):
            diagnostics.append(f"Document {document.name} skipped ({document.method.value})")
            continue
        if not document.has_readable_text(settings.min_text_chars):
            diagnostics.append(
                f"Document {document.name} has insufficient text content"
            )
            continue
        selected.append(document)
    return selected


@router.post(
    "/specReview",
    response_model=SpecReviewResponse,
    responses={
        200: {"model": SpecReviewResponse},
        400: {"model": ErrorResponse},
        501: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def spec_review(
    request: Request,
    settings: Settings = Depends(get_settings),
    ai_service: AIService = Depends(get_ai_service),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Review specification documents and return extracted requirements.

    Fetches every referenced file, extracts its text (with OCR fallback for
    scanned PDFs), sends the readable documents to the LLM and returns the
    deduplicated requirement records with diagnostics.
    """
    review_request = await _parse_request(request)

    if review_request.test:
        api_key = settings.active_api_key or ""
        check = ConfigCheckResponse(
            has_api_key=bool(api_key),
            api_key_length=len(api_key),
            diagnostics=["Test mode - configuration check"],
        )
        return JSONResponse(content=check.model_dump(by_alias=True))

    # Configuration gate comes before input validation
    if not settings.active_api_key and not ai_service.use_mock:
        raise SpecReviewError(
            status.HTTP_501_NOT_IMPLEMENTED,
            f"{settings.api_key_env_var} not set on server",
        )

    if not review_request.tender_id or not review_request.files:
        raise SpecReviewError(
            status.HTTP_400_BAD_REQUEST, "tenderId and files[] required"
        )

    diagnostics: list[str] = []
    try:
        logger.info(
            "Spec review for tender %s: %d file(s)",
            review_request.tender_id,
            len(review_request.files),
        )
        extractor = TextExtractionService(http_client, settings)
        documents = await extractor.extract_all(review_request.files, diagnostics)

        selected = select_documents(documents, settings, diagnostics)
        if not selected:
            raise SpecReviewError(
                status.HTTP_400_BAD_REQUEST,
                "Document has no readable text",
                diagnostics=diagnostics,
            )

        try:
            results = await ai_service.review_documents(
                selected, diagnostics, model=review_request.model
            )
        except AIServiceError as e:
            logger.error("Analysis failed for tender %s: %s", review_request.tender_id, e)
            diagnostics.append(f"Analysis failed: {e}")
            raise SpecReviewError(
                status.HTTP_502_BAD_GATEWAY,
                "Analysis failed",
                details=str(e),
                diagnostics=diagnostics,
            )

        logger.info(
            "Tender %s: %d unique requirements", review_request.tender_id, len(results)
        )
        return SpecReviewResponse(
            tender_id=review_request.tender_id,
            results=results,
            diagnostics=diagnostics,
        )

    except SpecReviewError:
        raise
    except Exception as e:
        logger.exception("Unexpected error during spec review")
        raise SpecReviewError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(e),
            diagnostics=diagnostics,
        )
