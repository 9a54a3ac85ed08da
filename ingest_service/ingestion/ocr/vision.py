from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ingest_service.ingestion.errors import JobTimeoutError, RemoteJobFailedError
from ingest_service.ingestion.ocr.document_intelligence import json_body

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisionConfig:
    endpoint: str
    key: str
    poll_seconds: float = 1.0
    max_attempts: int = 12
    language: str | None = None  # None lets the service detect per line
    timeout_seconds: float = 30.0

    @property
    def read_url(self) -> str:
        return f"{self.endpoint.rstrip('/')}/vision/v3.2/read/analyze"


class VisionReadClient:
    """Computer Vision Read: submit a reading job, poll, concatenate lines."""

    def __init__(
        self,
        *,
        cfg: VisionConfig,
        http: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._cfg = cfg
        self._http = http
        self._sleep = sleep

    def read(self, *, content: bytes) -> str:
        if self._http is not None:
            return self._read(self._http, content)
        with httpx.Client(timeout=self._cfg.timeout_seconds) as client:
            return self._read(client, content)

    def _read(self, client: httpx.Client, content: bytes) -> str:
        params = {"readingOrder": "natural"}
        if self._cfg.language:
            params["language"] = self._cfg.language
        logger.info("Vision OCR submit bytes=%d language=%s", len(content), self._cfg.language or "auto")

        resp = client.post(
            self._cfg.read_url,
            params=params,
            content=content,
            headers={
                "Content-Type": "application/octet-stream",
                "Ocp-Apim-Subscription-Key": self._cfg.key,
            },
        )
        if resp.status_code >= 400:
            short = " ".join(resp.text[:120].split())
            raise RemoteJobFailedError(f"Vision OCR submission failed: {resp.status_code} {short}")

        operation_url = resp.headers.get("operation-location")
        if not operation_url:
            raise RemoteJobFailedError("Vision OCR response has no operation-location")

        for _ in range(self._cfg.max_attempts):
            self._sleep(self._cfg.poll_seconds)
            body = json_body(
                client.get(operation_url, headers={"Ocp-Apim-Subscription-Key": self._cfg.key})
            )
            status = body.get("status")
            if status == "succeeded":
                return read_result_text(body.get("analyzeResult") or {})
            if status == "failed":
                raise RemoteJobFailedError("Vision OCR processing failed")

        raise JobTimeoutError(f"Vision OCR timed out after {self._cfg.max_attempts} polls")


def read_result_text(result: dict[str, Any]) -> str:
    pages = result.get("readResults") or result.get("pages") or []
    lines = [line["text"] for page in pages for line in page.get("lines") or [] if line.get("text")]
    return "\n".join(lines).strip()
