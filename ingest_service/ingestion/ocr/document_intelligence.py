from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ingest_service.ingestion.errors import JobTimeoutError, RemoteJobFailedError
from ingest_service.ingestion.mime import document_intelligence_content_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocIntConfig:
    endpoint: str
    key: str
    api_version: str = "2023-07-31"
    poll_seconds: float = 1.5
    max_wait_seconds: float = 60.0
    max_attempts: int = 45
    timeout_seconds: float = 30.0

    @property
    def analyze_url(self) -> str:
        base = self.endpoint.rstrip("/")
        return f"{base}/formrecognizer/documentModels/prebuilt-read:analyze?api-version={self.api_version}"


class DocumentIntelligenceClient:
    """
    Prebuilt-read analyze job:
    - submit raw bytes, receive an operation URL
    - poll at a fixed interval until succeeded/failed or the budget runs out
    """

    def __init__(
        self,
        *,
        cfg: DocIntConfig,
        http: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cfg = cfg
        self._http = http
        self._sleep = sleep
        self._clock = clock

    def analyze(self, *, content: bytes, mime_type: str) -> str:
        if self._http is not None:
            return self._analyze(self._http, content=content, mime_type=mime_type)
        with httpx.Client(timeout=self._cfg.timeout_seconds) as client:
            return self._analyze(client, content=content, mime_type=mime_type)

    def _analyze(self, client: httpx.Client, *, content: bytes, mime_type: str) -> str:
        content_type = document_intelligence_content_type(mime_type)
        logger.info("Document Intelligence submit content_type=%s bytes=%d", content_type, len(content))

        resp = client.post(
            self._cfg.analyze_url,
            content=content,
            headers={"Content-Type": content_type, "Ocp-Apim-Subscription-Key": self._cfg.key},
        )
        if resp.status_code >= 400:
            raise RemoteJobFailedError(
                f"Document Intelligence submission failed: {resp.status_code} {resp.text[:100]}"
            )

        operation_url = resp.headers.get("operation-location") or json_body(resp).get("operationLocation")
        if not operation_url:
            raise RemoteJobFailedError("Document Intelligence response has no operation-location")

        started = self._clock()
        for attempt in range(self._cfg.max_attempts):
            if self._clock() - started > self._cfg.max_wait_seconds:
                break
            self._sleep(self._cfg.poll_seconds)

            status_resp = client.get(operation_url, headers={"Ocp-Apim-Subscription-Key": self._cfg.key})
            body = json_body(status_resp)
            status = body.get("status")

            if status == "succeeded":
                logger.info("Document Intelligence succeeded after %d polls", attempt + 1)
                return analyze_result_text(body.get("analyzeResult") or {})
            if status == "failed":
                error = body.get("error") or {}
                message = error.get("message") if isinstance(error, dict) else str(error)
                raise RemoteJobFailedError(f"Document Intelligence failed: {message or error}")

        raise JobTimeoutError(
            f"Document Intelligence timed out after {self._cfg.max_attempts} polls "
            f"or {self._cfg.max_wait_seconds:.0f}s"
        )


def analyze_result_text(result: dict[str, Any]) -> str:
    """Pull text out of an analyzeResult, trying the whole-document content first."""
    content = result.get("content") or ""
    if content.strip():
        return content.strip()

    documents = result.get("documents") or []
    joined = "\n".join(str(d.get("content") or "") for d in documents)
    if joined.strip():
        return joined.strip()

    lines: list[str] = []
    for page in result.get("pages") or []:
        for line in page.get("lines") or []:
            if line.get("content"):
                lines.append(line["content"])
    return "\n".join(lines).strip()


def json_body(resp: httpx.Response) -> dict[str, Any]:
    if not resp.content:
        return {}
    try:
        obj = resp.json()
    except ValueError:
        return {}
    return obj if isinstance(obj, dict) else {}
