"""
Pydantic models for the spec review pipeline.

Defines the request/response contract of the review endpoint and the
normalized requirement record returned to the caller. Wire names are
camelCase; Python attributes are snake_case.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RequirementCategory(str, Enum):
    """Categories the model is asked to assign to requirements."""

    DESIGN = "Design"
    MATERIALS = "Materials"
    CODE = "Code"
    FABRICATION = "Fabrication"
    TESTING = "Testing"
    DOCUMENTATION = "Documentation"
    QUALITY = "Quality"
    DELIVERY = "Delivery"
    SAFETY = "Safety"
    OPERATIONAL = "Operational"


class ExtractionMethod(str, Enum):
    """How the text of a document was obtained."""

    PDF = "pdf"
    OCR_AZURE = "ocr-azure"
    OCR_SPACE = "ocr-space"
    OCR_TESSERACT = "ocr-tesseract"
    DOCX = "docx"
    TEXT = "text"
    UNSUPPORTED = "unsupported"
    ERROR = "error"


# =============================================================================
# Request Models
# =============================================================================


class FileReference(BaseModel):
    """
    A document to review.

    Attributes:
        name: Original filename, used for type detection and attribution.
        url: Location the file is fetched from.
    """

    name: str = Field(
        ...,
        min_length=1,
        description="Original filename",
        examples=["vessel-spec.pdf"],
    )
    url: str = Field(
        ...,
        min_length=1,
        description="URL the file can be downloaded from",
    )


class SpecReviewRequest(BaseModel):
    """Request body for the spec review endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    tender_id: str | None = Field(
        default=None,
        alias="tenderId",
        description="Identifier of the tender the documents belong to",
    )
    files: list[FileReference] = Field(
        default_factory=list,
        description="Documents to review",
    )
    model: str | None = Field(
        default=None,
        description="LLM model override",
    )
    test: bool = Field(
        default=False,
        description="Only report configuration status",
    )

    @field_validator("tender_id", mode="before")
    @classmethod
    def stringify_tender_id(cls, v: Any) -> str | None:
        """Callers may send numeric tender ids."""
        if v is None or isinstance(v, bool):
            return v
        if isinstance(v, (int, float)):
            return str(v)
        return v


# =============================================================================
# Requirement Records
# =============================================================================


class RequirementSource(BaseModel):
    """Where a requirement was found. Extra keys from the model are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    file_name: str | None = Field(default=None, alias="fileName")
    section: str | None = None

    @field_validator("file_name", "section", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> str | None:
        """Models occasionally return numeric section ids."""
        if v is None:
            return None
        return str(v)


class RequirementRecord(BaseModel):
    """
    One extracted engineering requirement.

    Attributes:
        id: Identifier from the model, or the 1-based position in the result list.
        severity: Severity label, "Medium" when not provided.
        category: Requirement category, "Design" when not provided.
        requirement: The requirement text with values and tolerances.
        rationale: Why the requirement exists.
        source: Document and section the requirement came from.
    """

    id: str = Field(..., description="Requirement identifier")
    severity: str = Field(default="Medium", description="Severity label")
    category: str = Field(
        default=RequirementCategory.DESIGN.value,
        description="Requirement category",
    )
    requirement: str = Field(default="", description="Requirement text")
    rationale: str = Field(default="", description="Why this requirement matters")
    source: RequirementSource | None = Field(
        default=None,
        description="Where the requirement was found",
    )


# =============================================================================
# Internal Models
# =============================================================================


class ExtractedDocument(BaseModel):
    """Text extracted from one fetched file."""

    name: str
    text: str = ""
    method: ExtractionMethod = ExtractionMethod.TEXT

    def has_readable_text(self, min_chars: int) -> bool:
        return len(self.text.strip()) >= min_chars


# =============================================================================
# Response Models
# =============================================================================


class SpecReviewResponse(BaseModel):
    """Successful review result."""

    model_config = ConfigDict(populate_by_name=True)

    tender_id: str | None = Field(default=None, alias="tenderId")
    results: list[RequirementRecord] = Field(default_factory=list)
    diagnostics: list[str] = Field(default_factory=list)


class ConfigCheckResponse(BaseModel):
    """Response to a request sent with ``test: true``."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="Test endpoint working")
    has_api_key: bool = Field(..., alias="hasApiKey")
    api_key_length: int = Field(..., ge=0, alias="apiKeyLength")
    diagnostics: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error body returned for request-level failures."""

    error: str
    details: str | None = None
    diagnostics: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(default="1.0.0")
