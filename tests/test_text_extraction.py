"""Tests for document fetching, type detection and the OCR fallback chain."""

import httpx
import pytest

from app.backend.models import ExtractionMethod, FileReference
from app.backend.services.document_fetcher import DocumentFetchError, DocumentFetcher
from app.backend.services.ocr import OCRError
from app.backend.services.pdf_service import PDFParseError, PDFService
from app.backend.services.text_extraction import (
    DocumentKind,
    TextExtractionService,
    detect_kind,
    extract_docx_text,
)

from tests.conftest import SPEC_TEXT, RouteTransport, make_settings

OCR_TEXT = "SCANNED: Nozzle loads per WRC 107, flange rating ASME B16.5 Class 300. " * 2


class StubPDFService(PDFService):
    """PDF service returning a fixed text layer (or raising)."""

    def __init__(self, text: str = "", error: Exception | None = None):
        super().__init__()
        self.text = text
        self.error = error

    def extract_text(self, pdf_bytes: bytes) -> str:
        if self.error:
            raise self.error
        return self.text


class StubEngine:
    """OCR engine with a fixed outcome."""

    def __init__(self, name: str, text: str = "", error: Exception | None = None):
        self.name = name
        self.method = ExtractionMethod.OCR_SPACE
        self.text = text
        self.error = error
        self.calls = 0

    async def recognize(self, pdf_bytes, file_name, diagnostics):
        self.calls += 1
        if self.error:
            raise self.error
        return self.text


def _service(routes: dict[str, httpx.Response], pdf_service=None, **settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(RouteTransport(routes)))
    return TextExtractionService(
        client, make_settings(**settings), pdf_service=pdf_service or StubPDFService()
    )


class TestDetectKind:
    """Tests for file type classification."""

    @pytest.mark.parametrize(
        "name, content_type, expected",
        [
            ("spec.pdf", "", DocumentKind.PDF),
            ("download", "application/pdf", DocumentKind.PDF),
            ("spec.DOCX", "", DocumentKind.DOCX),
            (
                "download",
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                DocumentKind.DOCX,
            ),
            ("notes.md", "application/octet-stream", DocumentKind.TEXT),
            ("data.yaml", "", DocumentKind.TEXT),
            ("readme", "text/plain; charset=utf-8", DocumentKind.TEXT),
            ("drawing.dwg", "application/octet-stream", DocumentKind.UNSUPPORTED),
        ],
    )
    def test_detect_kind(self, name, content_type, expected):
        assert detect_kind(name, content_type) == expected

    def test_content_type_wins_over_extension(self):
        assert detect_kind("spec.txt", "application/pdf") == DocumentKind.PDF


class TestDocumentFetcher:
    """Tests for DocumentFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_returns_content_and_type(self):
        routes = {
            "https://files.test/a.txt": httpx.Response(
                200, content=b"hello", headers={"content-type": "text/plain"}
            )
        }
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(RouteTransport(routes))
        ) as client:
            fetched = await DocumentFetcher(client).fetch(
                FileReference(name="a.txt", url="https://files.test/a.txt")
            )
        assert fetched.content == b"hello"
        assert fetched.content_type == "text/plain"

    @pytest.mark.asyncio
    async def test_fetch_non_2xx_raises(self):
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(RouteTransport())
        ) as client:
            with pytest.raises(DocumentFetchError) as exc_info:
                await DocumentFetcher(client).fetch(
                    FileReference(name="a.txt", url="https://files.test/missing")
                )
        assert str(exc_info.value) == "fetch a.txt -> 404"


class TestExtraction:
    """Tests for TextExtractionService."""

    @pytest.mark.asyncio
    async def test_text_file_is_decoded(self):
        url = "https://files.test/spec.txt"
        service = _service({url: httpx.Response(200, content=SPEC_TEXT.encode())})
        diagnostics: list[str] = []

        doc = await service.extract(FileReference(name="spec.txt", url=url), diagnostics)

        assert doc.text == SPEC_TEXT
        assert doc.method == ExtractionMethod.TEXT
        assert diagnostics == []

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self):
        url = "https://files.test/a.csv"
        service = _service({url: httpx.Response(200, content=b"caf\xe9 " + b"x" * 60)})

        doc = await service.extract(FileReference(name="a.csv", url=url), [])

        assert "\ufffd" in doc.text

    @pytest.mark.asyncio
    async def test_docx_paragraphs_and_tables(self, sample_docx_bytes: bytes):
        url = "https://files.test/spec.docx"
        service = _service({url: httpx.Response(200, content=sample_docx_bytes)})

        doc = await service.extract(FileReference(name="spec.docx", url=url), [])

        assert doc.method == ExtractionMethod.DOCX
        assert "SA-516 Gr.70N" in doc.text
        assert "Corrosion allowance | 3 mm" in doc.text

    def test_extract_docx_text(self, sample_docx_bytes: bytes):
        assert extract_docx_text(sample_docx_bytes).startswith("Shell material")

    @pytest.mark.asyncio
    async def test_unsupported_type_placeholder(self):
        url = "https://files.test/drawing.dwg"
        service = _service(
            {
                url: httpx.Response(
                    200,
                    content=b"\x00\x01",
                    headers={"content-type": "application/acad"},
                )
            }
        )
        diagnostics: list[str] = []

        doc = await service.extract(FileReference(name="drawing.dwg", url=url), diagnostics)

        assert doc.method == ExtractionMethod.UNSUPPORTED
        assert doc.text == (
            "Unsupported file type for drawing.dwg. Content-type: application/acad"
        )

    @pytest.mark.asyncio
    async def test_fetch_error_yields_placeholder(self):
        service = _service({})
        diagnostics: list[str] = []

        doc = await service.extract(
            FileReference(name="spec.pdf", url="https://files.test/gone.pdf"),
            diagnostics,
        )

        assert doc.method == ExtractionMethod.ERROR
        assert doc.text == "Failed to load spec.pdf: fetch spec.pdf -> 404"
        assert diagnostics == ["FETCH ERROR for spec.pdf - fetch spec.pdf -> 404"]

    @pytest.mark.asyncio
    async def test_text_is_truncated(self):
        url = "https://files.test/big.txt"
        service = _service(
            {url: httpx.Response(200, content=b"a" * 500)}, max_document_chars=120
        )

        doc = await service.extract(FileReference(name="big.txt", url=url), [])

        assert len(doc.text) == 120

    @pytest.mark.asyncio
    async def test_short_text_reports_empty(self):
        url = "https://files.test/short.txt"
        service = _service({url: httpx.Response(200, content=b"too short")})
        diagnostics: list[str] = []

        await service.extract(FileReference(name="short.txt", url=url), diagnostics)

        assert diagnostics == ["EMPTY TEXT after all attempts for short.txt"]

    @pytest.mark.asyncio
    async def test_extract_all_keeps_order(self):
        routes = {
            "https://files.test/a.txt": httpx.Response(200, content=SPEC_TEXT.encode()),
            "https://files.test/b.md": httpx.Response(200, content=SPEC_TEXT.encode()),
        }
        service = _service(routes)

        docs = await service.extract_all(
            [
                FileReference(name="a.txt", url="https://files.test/a.txt"),
                FileReference(name="b.md", url="https://files.test/b.md"),
            ],
            [],
        )

        assert [d.name for d in docs] == ["a.txt", "b.md"]


class TestPDFFallbackChain:
    """Tests for the PDF text layer and OCR fallback order."""

    URL = "https://files.test/spec.pdf"

    def _pdf_service(self, routes=None, **kwargs):
        routes = routes or {self.URL: httpx.Response(200, content=b"%PDF-1.4 scanned")}
        return _service(routes, **kwargs)

    @pytest.mark.asyncio
    async def test_text_layer_skips_ocr(self):
        service = self._pdf_service(pdf_service=StubPDFService(text=SPEC_TEXT))
        engine = StubEngine("OCR.SPACE", text=OCR_TEXT)
        service.ocr_engines = [engine]

        doc = await service.extract(FileReference(name="spec.pdf", url=self.URL), [])

        assert doc.text == SPEC_TEXT
        assert doc.method == ExtractionMethod.PDF
        assert engine.calls == 0

    @pytest.mark.asyncio
    async def test_parse_failure_falls_back_to_ocr(self):
        service = self._pdf_service(
            pdf_service=StubPDFService(error=PDFParseError("bad xref"))
        )
        service.ocr_engines = [StubEngine("OCR.SPACE", text=OCR_TEXT)]
        diagnostics: list[str] = []

        doc = await service.extract(
            FileReference(name="spec.pdf", url=self.URL), diagnostics
        )

        assert doc.text == OCR_TEXT
        assert diagnostics == [
            "PDF-PARSE: failed - bad xref",
            f"OCR.SPACE: success, {len(OCR_TEXT)} chars",
        ]

    @pytest.mark.asyncio
    async def test_chain_stops_at_first_success(self):
        service = self._pdf_service()
        first = StubEngine("AZURE", error=OCRError("Azure analyze status 401"))
        second = StubEngine("OCR.SPACE", text=OCR_TEXT)
        third = StubEngine("TESSERACT", text="never used " * 10)
        service.ocr_engines = [first, second, third]
        diagnostics: list[str] = []

        doc = await service.extract(
            FileReference(name="spec.pdf", url=self.URL), diagnostics
        )

        assert doc.text == OCR_TEXT
        assert (first.calls, second.calls, third.calls) == (1, 1, 0)
        assert "AZURE: failed - Azure analyze status 401" in diagnostics

    @pytest.mark.asyncio
    async def test_unexpected_engine_error_falls_through(self):
        service = self._pdf_service()
        first = StubEngine("AZURE", error=TypeError("'list' object is not a mapping"))
        second = StubEngine("OCR.SPACE", text=OCR_TEXT)
        service.ocr_engines = [first, second]
        diagnostics: list[str] = []

        doc = await service.extract(
            FileReference(name="spec.pdf", url=self.URL), diagnostics
        )

        assert doc.text == OCR_TEXT
        assert doc.method == ExtractionMethod.OCR_SPACE
        assert second.calls == 1
        assert "AZURE: failed - 'list' object is not a mapping" in diagnostics
        assert not any(d.startswith("FETCH ERROR") for d in diagnostics)

    @pytest.mark.asyncio
    async def test_malformed_azure_poll_falls_back_to_ocr_space(self):
        routes = {
            self.URL: httpx.Response(200, content=b"%PDF-1.4"),
            "https://vision.test/vision/v3.2/read/analyze": httpx.Response(
                202,
                headers={
                    "Operation-Location": "https://vision.test/operations/op-1"
                },
            ),
            "https://vision.test/operations/op-1": httpx.Response(
                200, json=[{"status": "running"}]
            ),
            "https://api.ocr.space/parse/image": httpx.Response(
                200,
                json={"ParsedResults": [{"ParsedText": OCR_TEXT}]},
            ),
        }
        service = _service(
            routes,
            azure_cv_endpoint="https://vision.test/",
            azure_cv_key="k",
        )
        diagnostics: list[str] = []

        doc = await service.extract(
            FileReference(name="scan.pdf", url=self.URL), diagnostics
        )

        assert doc.method == ExtractionMethod.OCR_SPACE
        assert doc.text == OCR_TEXT
        assert diagnostics[0] == "AZURE: start for scan.pdf (8 bytes)"
        assert diagnostics[1].startswith("AZURE: failed - Azure poll returned")
        assert diagnostics[2] == f"OCR.SPACE: success, {len(OCR_TEXT)} chars"

    @pytest.mark.asyncio
    async def test_all_engines_insufficient(self):
        service = self._pdf_service()
        service.ocr_engines = [StubEngine("OCR.SPACE", text="tiny")]
        diagnostics: list[str] = []

        doc = await service.extract(
            FileReference(name="spec.pdf", url=self.URL), diagnostics
        )

        assert doc.method == ExtractionMethod.PDF
        assert doc.text == ""
        assert diagnostics[-1] == "EMPTY TEXT after all attempts for spec.pdf"

    def test_engine_order_from_settings(self):
        service = _service(
            {},
            azure_cv_endpoint="https://vision.test/",
            azure_cv_key="k",
            tesseract_enabled=True,
        )
        assert [e.name for e in service.ocr_engines] == [
            "AZURE",
            "OCR.SPACE",
            "TESSERACT",
        ]

    def test_azure_skipped_without_credentials(self):
        service = _service({})
        assert [e.name for e in service.ocr_engines] == ["OCR.SPACE"]
