"""Pytest configuration and fixtures."""

import io
import json
from typing import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from app.backend.config import Settings, get_settings
from app.backend.main import app
from app.backend.routers.spec_review import get_http_client
from app.backend.services.ai import AIService, get_ai_service

SPEC_TEXT = (
    "2.1 Design pressure shall be 15 barg at a design temperature of 120 degC.\n\n"
    "5.3 Hydrostatic test pressure shall be 1.3 times MAWP held for 60 minutes.\n"
)

Handler = Callable[[httpx.Request], httpx.Response]


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values = {
        "anthropic_api_key": "test-key",
        "azure_poll_interval_seconds": 0.0,
        "azure_poll_max_attempts": 3,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeLLM:
    """Records prompts and replays canned responses in order."""

    def __init__(self, responses: list[str | Exception] | None = None):
        self.responses = list(responses or [])
        self.calls: list[dict[str, str]] = []

    async def __call__(self, system_prompt: str, user_prompt: str, model: str) -> str:
        self.calls.append(
            {"system": system_prompt, "prompt": user_prompt, "model": model}
        )
        response = self.responses.pop(0) if self.responses else "[]"
        if isinstance(response, Exception):
            raise response
        return response


class RouteTransport:
    """MockTransport handler serving fixed responses by URL."""

    def __init__(self, routes: dict[str, httpx.Response] | None = None):
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get(str(request.url))
        if response is None:
            return httpx.Response(404, text="not found")
        return response


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def ai_service(settings: Settings, fake_llm: FakeLLM) -> AIService:
    service = AIService(settings=settings, use_mock=False)
    service.complete = fake_llm
    return service


@pytest.fixture
def transport() -> RouteTransport:
    return RouteTransport()


@pytest.fixture
def client(
    settings: Settings, ai_service: AIService, transport: RouteTransport
) -> Generator[TestClient, None, None]:
    """Create a test client with settings, LLM and remote hosts stubbed."""

    async def override_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as c:
            yield c

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_ai_service] = lambda: ai_service
    app.dependency_overrides[get_http_client] = override_http_client
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal valid PDF for testing.

    This is a minimal PDF structure that should be recognized as a valid PDF.
    """
    # One empty page; xref entries are 20 bytes each (trailing space kept)
    return (
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
        b"2 0 obj\n<< /Type /Pages /Kids [3 0 R] /Count 1 >>\nendobj\n"
        b"3 0 obj\n<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>\nendobj\n"
        b"xref\n0 4\n"
        b"0000000000 65535 f \n"
        b"0000000009 00000 n \n"
        b"0000000058 00000 n \n"
        b"0000000115 00000 n \n"
        b"trailer\n<< /Size 4 /Root 1 0 R >>\n"
        b"startxref\n186\n%%EOF\n"
    )


@pytest.fixture
def sample_docx_bytes() -> bytes:
    """Build a small .docx with a paragraph and a table."""
    from docx import Document

    document = Document()
    document.add_paragraph("Shell material shall be SA-516 Gr.70N, normalized.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Corrosion allowance"
    table.rows[0].cells[1].text = "3 mm"
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def requirements_json() -> str:
    return json.dumps(
        [
            {
                "id": "req_1",
                "category": "Design",
                "requirement": "Design pressure 15 barg at 120 degC",
                "rationale": "Pressure boundary",
                "source": {"fileName": "spec.txt", "section": "2.1"},
            },
            {
                "id": "req_2",
                "category": "Testing",
                "severity": "High",
                "requirement": "Hydrostatic test at 1.3 x MAWP for 60 minutes",
                "rationale": "Pressure integrity",
            },
        ]
    )
