"""
AI service package for engineering requirement extraction.

This package provides modular AI functionality split into:
- prompts: Review system prompt and per-chunk user prompt
- review: Chunked review of one document
- parsing: JSON extraction, deduplication and normalization

The AIService class owns the provider client (Anthropic or OpenAI) and
ties these modules together.
"""

import json
import logging
from typing import Any

# Handle both package imports and standalone imports
try:
    from ...config import Settings, get_settings
    from ...models import ExtractedDocument, RequirementRecord
except ImportError:
    from config import Settings, get_settings
    from models import ExtractedDocument, RequirementRecord

from .exceptions import AIServiceError
from .parsing import (
    dedupe_requirements,
    normalize_requirements,
    parse_requirements_json,
)
from .prompts import REVIEW_SYSTEM_PROMPT, build_review_prompt
from .review import ReviewOutcome, chunk_text, review_document

logger = logging.getLogger(__name__)

# Export public functions and classes
__all__ = [
    "AIService",
    "AIServiceError",
    "REVIEW_SYSTEM_PROMPT",
    "ReviewOutcome",
    "build_review_prompt",
    "chunk_text",
    "dedupe_requirements",
    "get_ai_service",
    "normalize_requirements",
    "parse_requirements_json",
    "review_document",
]


# =============================================================================
# AIService Class
# =============================================================================


class AIService:
    """
    Service for LLM-powered specification review.

    Sends document text to Anthropic's Messages API (default) or OpenAI's
    Chat Completions API and turns the replies into requirement records.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        use_mock: bool | None = None,
    ):
        """
        Initialize the AI service.

        Args:
            settings: Provider, model and limits. If None, reads from config/environment.
            use_mock: If True, return canned requirements instead of calling the
                provider. Defaults to ``settings.mock_mode``.
        """
        self.settings = settings or get_settings()
        self.provider = self.settings.llm_provider
        self.api_key = self.settings.active_api_key
        self.use_mock = self.settings.mock_mode if use_mock is None else use_mock
        self._client = None

        if self.use_mock:
            logger.warning(
                "AI Service running in MOCK MODE. Unset MOCK_MODE for real extraction."
            )

    @property
    def default_model(self) -> str:
        return self.settings.default_model

    @property
    def client(self):
        """Lazy-load the provider client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    f"{self.settings.api_key_env_var} not set on server"
                )
            if self.provider == "openai":
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(api_key=self.api_key)
            else:
                from anthropic import AsyncAnthropic

                self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def complete(self, system_prompt: str, user_prompt: str, model: str) -> str:
        """
        Run one completion and return the response text.

        Raises:
            AIServiceError: If the provider call fails.
        """
        if self.use_mock:
            return self._get_mock_response()

        settings = self.settings
        logger.info(
            "Calling %s model %s (prompt %d chars)",
            self.provider,
            model,
            len(user_prompt),
        )
        try:
            if self.provider == "openai":
                response = await self.client.chat.completions.create(
                    model=model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    max_tokens=settings.llm_max_tokens,
                    temperature=settings.llm_temperature,
                )
                text = response.choices[0].message.content or ""
            else:
                response = await self.client.messages.create(
                    model=model,
                    max_tokens=settings.llm_max_tokens,
                    temperature=settings.llm_temperature,
                    system=system_prompt,
                    messages=[{"role": "user", "content": user_prompt}],
                )
                text = "\n".join(
                    block.text
                    for block in (response.content or [])
                    if getattr(block, "type", None) == "text"
                )
        except AIServiceError:
            raise
        except Exception as e:
            logger.exception("%s completion failed", self.provider)
            raise AIServiceError(f"{self.provider} API error: {e}") from e

        logger.info("Model response: %d chars", len(text))
        return text

    async def review_documents(
        self,
        documents: list[ExtractedDocument],
        diagnostics: list[str],
        model: str | None = None,
    ) -> list[RequirementRecord]:
        """
        Extract, deduplicate and normalize requirements from documents.

        Args:
            documents: Documents with readable text, in review order.
            diagnostics: List that progress and failure messages are appended to.
            model: Model override; the provider default when None.

        Returns:
            Unique requirement records across all documents.

        Raises:
            AIServiceError: If every LLM call failed.
        """
        model = model or self.default_model
        entries: list[Any] = []
        calls = failures = 0
        last_error = None

        for document in documents:
            diagnostics.append(
                f"Processing {document.name} - {len(document.text)} characters"
            )
            outcome = await review_document(
                document,
                self.complete,
                model,
                self.settings.llm_chunk_chars,
                diagnostics,
            )
            entries.extend(outcome.entries)
            calls += outcome.calls
            failures += outcome.failures
            last_error = outcome.last_error or last_error

        if calls and failures == calls:
            raise AIServiceError(last_error or "all LLM calls failed")

        diagnostics.append(f"Successfully extracted {len(entries)} requirements")
        unique = dedupe_requirements(entries)
        diagnostics.append(f"LLM: final results - {len(unique)} unique requirements")
        if self.use_mock:
            diagnostics.append("DEVELOPMENT MODE: using mock requirements")
        return normalize_requirements(unique)

    def _get_mock_response(self) -> str:
        """Return a canned model reply for development."""
        return json.dumps(
            [
                {
                    "id": "req_1",
                    "category": "Design",
                    "requirement": "Design pressure 15 barg at 120 degC",
                    "rationale": "Defines the pressure boundary the vessel must withstand",
                    "source": {"section": "2.1"},
                },
                {
                    "id": "req_2",
                    "category": "Testing",
                    "requirement": "Hydrostatic test at 1.3 x MAWP held for 60 minutes",
                    "rationale": "Demonstrates pressure integrity per ASME VIII Div 1 UG-99",
                    "severity": "High",
                },
                {
                    "id": "req_3",
                    "category": "Materials",
                    "requirement": "Shell plates SA-516 Gr.70N with EN 10204 3.1 certificates",
                    "rationale": "Ensures traceable, normalized carbon steel for the shell",
                },
            ]
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
