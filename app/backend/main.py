"""
FastAPI application for the specification review service.

Provides endpoints for:
- Health checks
- Reviewing engineering specification documents and extracting
  structured requirement records with an LLM
"""

import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Handle both package imports (when running as module) and standalone imports (uvicorn main:app)
try:
    from .config import get_settings
    from .models import HealthResponse
    from .routers import spec_review
    from .routers.spec_review import SpecReviewError
    from .services.ai import get_ai_service
    from .services.pdf_service import get_pdf_service
except ImportError:
    import sys
    from pathlib import Path
    # Add parent directory to path for standalone imports
    backend_dir = Path(__file__).parent
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))
    from config import get_settings
    from models import HealthResponse
    from routers import spec_review
    from routers.spec_review import SpecReviewError
    from services.ai import get_ai_service
    from services.pdf_service import get_pdf_service

# Configure logging
logging.basicConfig(
    level=get_settings().effective_log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Spec Review Service...")
    # Initialize services on startup
    get_pdf_service()
    ai_service = get_ai_service()
    logger.info(
        "Services initialized successfully (provider=%s, model=%s)",
        ai_service.provider,
        ai_service.default_model,
    )
    yield
    logger.info("Shutting down Spec Review Service...")


# Create FastAPI application
app = FastAPI(
    title="Spec Review API",
    description="Engineering requirement extraction from specification documents",
    version="1.0.0",
    lifespan=lifespan,
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(status="healthy")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy")


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(spec_review.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(SpecReviewError)
async def spec_review_error_handler(request: Request, exc: SpecReviewError):
    """Render request-level review failures with their diagnostics."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )
