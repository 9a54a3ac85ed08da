"""Unit tests for the Document Intelligence and Vision Read job clients.

HTTP is served by ``httpx.MockTransport``; sleeping and the wall clock are
injected so poll budgets are exercised without waiting.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable

import httpx
import pytest

from ingest_service.ingestion.errors import JobTimeoutError, RemoteJobFailedError
from ingest_service.ingestion.ocr.document_intelligence import (
    DocIntConfig,
    DocumentIntelligenceClient,
    analyze_result_text,
)
from ingest_service.ingestion.ocr.vision import VisionConfig, VisionReadClient, read_result_text

OPERATION_URL = "https://ocr.example/operations/42"


def _job_server(
    statuses: list[dict],
    *,
    submit_status: int = 202,
    seen: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    polls = iter(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.method == "POST":
            if submit_status >= 400:
                return httpx.Response(submit_status, text="Access denied due to invalid subscription key")
            return httpx.Response(submit_status, headers={"operation-location": OPERATION_URL})
        try:
            return httpx.Response(200, json=next(polls))
        except StopIteration:
            return httpx.Response(200, json={"status": "running"})

    return handler


def _http(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# ===========================================================================
# Document Intelligence
# ===========================================================================


class TestDocumentIntelligence:
    def _client(self, handler, *, max_attempts: int = 45, max_wait: float = 60.0, clock=None, sleeps=None):
        cfg = DocIntConfig(
            endpoint="https://docint.example/",
            key="secret",
            max_attempts=max_attempts,
            max_wait_seconds=max_wait,
        )
        return DocumentIntelligenceClient(
            cfg=cfg,
            http=_http(handler),
            sleep=(sleeps.append if sleeps is not None else lambda s: None),
            clock=clock or (lambda: 0.0),
        )

    def test_submit_then_poll_until_succeeded(self) -> None:
        seen: list[httpx.Request] = []
        sleeps: list[float] = []
        handler = _job_server(
            [{"status": "running"}, {"status": "succeeded", "analyzeResult": {"content": "Policy text"}}],
            seen=seen,
        )

        text = self._client(handler, sleeps=sleeps).analyze(content=b"%PDF", mime_type="application/pdf")

        assert text == "Policy text"
        assert sleeps == [1.5, 1.5]
        submit = seen[0]
        assert submit.url.path == "/formrecognizer/documentModels/prebuilt-read:analyze"
        assert submit.url.params["api-version"] == "2023-07-31"
        assert submit.headers["Content-Type"] == "application/pdf"
        assert submit.headers["Ocp-Apim-Subscription-Key"] == "secret"
        assert all(str(r.url) == OPERATION_URL for r in seen[1:])

    def test_image_content_type(self) -> None:
        seen: list[httpx.Request] = []
        handler = _job_server([{"status": "succeeded", "analyzeResult": {"content": "x"}}], seen=seen)
        self._client(handler).analyze(content=b"\xff\xd8", mime_type="image/jpg")
        assert seen[0].headers["Content-Type"] == "image/jpeg"

    def test_failed_job_raises_with_message(self) -> None:
        handler = _job_server([{"status": "failed", "error": {"message": "Corrupt file"}}])
        with pytest.raises(RemoteJobFailedError, match="Corrupt file"):
            self._client(handler).analyze(content=b"%PDF", mime_type="application/pdf")

    def test_attempt_budget(self) -> None:
        sleeps: list[float] = []
        handler = _job_server([])
        with pytest.raises(JobTimeoutError):
            self._client(handler, max_attempts=3, sleeps=sleeps).analyze(content=b"%PDF", mime_type="application/pdf")
        assert len(sleeps) == 3

    def test_wall_clock_budget(self) -> None:
        seen: list[httpx.Request] = []
        ticks = itertools.count(0, 10)
        handler = _job_server([], seen=seen)
        client = self._client(handler, max_wait=15, clock=lambda: float(next(ticks)))

        with pytest.raises(JobTimeoutError):
            client.analyze(content=b"%PDF", mime_type="application/pdf")
        # submit + a single poll before the 15s budget was exceeded
        assert len(seen) == 2

    def test_submit_rejected(self) -> None:
        handler = _job_server([], submit_status=401)
        with pytest.raises(RemoteJobFailedError, match="401"):
            self._client(handler).analyze(content=b"%PDF", mime_type="application/pdf")

    def test_missing_operation_location(self) -> None:
        client = self._client(lambda request: httpx.Response(202))
        with pytest.raises(RemoteJobFailedError, match="operation-location"):
            client.analyze(content=b"%PDF", mime_type="application/pdf")

    def test_timeouts_are_timeout_errors(self) -> None:
        assert issubclass(JobTimeoutError, TimeoutError)


class TestAnalyzeResultText:
    def test_prefers_content(self) -> None:
        assert analyze_result_text({"content": " full ", "pages": [{"lines": [{"content": "line"}]}]}) == "full"

    def test_documents_then_lines(self) -> None:
        assert analyze_result_text({"documents": [{"content": "doc one"}, {"content": "doc two"}]}) == "doc one\ndoc two"
        result = {"pages": [{"lines": [{"content": "a"}, {"content": "b"}]}, {"lines": [{"content": "c"}]}]}
        assert analyze_result_text(result) == "a\nb\nc"

    def test_empty(self) -> None:
        assert analyze_result_text({}) == ""


# ===========================================================================
# Vision Read
# ===========================================================================


class TestVisionRead:
    def _client(self, handler, *, max_attempts: int = 12, sleeps=None, language=None) -> VisionReadClient:
        cfg = VisionConfig(endpoint="https://vision.example", key="secret", max_attempts=max_attempts, language=language)
        return VisionReadClient(
            cfg=cfg,
            http=_http(handler),
            sleep=(sleeps.append if sleeps is not None else lambda s: None),
        )

    def test_read_concatenates_lines(self) -> None:
        seen: list[httpx.Request] = []
        result = {"readResults": [{"lines": [{"text": "Insured: Acme"}]}, {"lines": [{"text": "UMR: B0999"}]}]}
        handler = _job_server([{"status": "running"}, {"status": "succeeded", "analyzeResult": result}], seen=seen)

        text = self._client(handler).read(content=b"\x89PNG")

        assert text == "Insured: Acme\nUMR: B0999"
        submit = seen[0]
        assert submit.url.path == "/vision/v3.2/read/analyze"
        assert submit.url.params["readingOrder"] == "natural"
        assert "language" not in submit.url.params
        assert submit.headers["Content-Type"] == "application/octet-stream"

    def test_language_hint(self) -> None:
        seen: list[httpx.Request] = []
        handler = _job_server([{"status": "succeeded", "analyzeResult": {}}], seen=seen)
        assert self._client(handler, language="he").read(content=b"\x89PNG") == ""
        assert seen[0].url.params["language"] == "he"

    def test_failed_job(self) -> None:
        handler = _job_server([{"status": "failed"}])
        with pytest.raises(RemoteJobFailedError):
            self._client(handler).read(content=b"\x89PNG")

    def test_attempt_budget(self) -> None:
        sleeps: list[float] = []
        with pytest.raises(JobTimeoutError, match="4 polls"):
            self._client(_job_server([]), max_attempts=4, sleeps=sleeps).read(content=b"\x89PNG")
        assert sleeps == [1.0] * 4

    def test_read_result_pages_layout(self) -> None:
        assert read_result_text({"pages": [{"lines": [{"text": "one"}, {"text": ""}]}]}) == "one"
