from __future__ import annotations

import os
from dataclasses import dataclass


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    return int(v)


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    return float(v)


def _first_env(*names: str) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v:
            return v.strip()
    return None


@dataclass(frozen=True)
class IngestConfig:
    # Document Intelligence (async analyze job)
    docint_endpoint: str | None = None
    docint_key: str | None = None
    docint_api_version: str = "2023-07-31"
    docint_poll_seconds: float = 1.5
    docint_max_wait_seconds: float = 60.0
    docint_max_attempts: int = 45

    # Vision Read OCR
    vision_endpoint: str | None = None
    vision_key: str | None = None
    vision_poll_seconds: float = 1.0
    vision_max_attempts: int = 12

    # Deployment
    constrained_mode: bool = False
    local_ocr_enabled: bool = True
    tesseract_cmd: str | None = None
    ocr_zoom: float = 1.5

    # Heuristics
    ocr_max_pages: int = 2
    min_text_chars: int = 200

    http_timeout_seconds: float = 30.0

    @property
    def docint_configured(self) -> bool:
        return bool(self.docint_endpoint and self.docint_key)

    @property
    def vision_configured(self) -> bool:
        return bool(self.vision_endpoint and self.vision_key)

    @classmethod
    def from_env(cls) -> IngestConfig:
        # RENDER is set by the Render platform
        constrained = _get_bool("INGEST_CONSTRAINED_MODE", False) or _get_bool("RENDER", False)

        return cls(
            docint_endpoint=_first_env("AZURE_DOCINT_ENDPOINT", "AZURE_DOCUMENT_INTELLIGENCE_ENDPOINT"),
            docint_key=_first_env("AZURE_DOCINT_KEY", "AZURE_DOCUMENT_INTELLIGENCE_KEY"),
            docint_api_version=os.getenv("INGEST_DOCINT_API_VERSION", "2023-07-31"),
            docint_poll_seconds=_get_float("INGEST_DOCINT_POLL_SECONDS", 1.5),
            docint_max_wait_seconds=_get_float("INGEST_DOCINT_MAX_WAIT_SECONDS", 60.0),
            docint_max_attempts=_get_int("INGEST_DOCINT_MAX_ATTEMPTS", 45),
            vision_endpoint=_first_env("AZURE_OCR_ENDPOINT"),
            vision_key=_first_env("AZURE_OCR_KEY"),
            vision_poll_seconds=_get_float("INGEST_OCR_POLL_SECONDS", 1.0),
            vision_max_attempts=_get_int("INGEST_OCR_MAX_ATTEMPTS", 12),
            constrained_mode=constrained,
            local_ocr_enabled=_get_bool("INGEST_LOCAL_OCR_ENABLED", True),
            tesseract_cmd=_first_env("INGEST_TESSERACT_CMD"),
            ocr_zoom=_get_float("INGEST_OCR_ZOOM", 1.5),
            ocr_max_pages=_get_int("INGEST_OCR_MAX_PAGES", 2),
            min_text_chars=_get_int("INGEST_MIN_TEXT_CHARS", 200),
            http_timeout_seconds=_get_float("INGEST_HTTP_TIMEOUT_SECONDS", 30.0),
        )

    def validate(self) -> None:
        pairs = {
            "AZURE_DOCINT": (self.docint_endpoint, self.docint_key),
            "AZURE_OCR": (self.vision_endpoint, self.vision_key),
        }
        for prefix, (endpoint, key) in pairs.items():
            if bool(endpoint) != bool(key):
                missing = f"{prefix}_KEY" if endpoint else f"{prefix}_ENDPOINT"
                raise ValueError(f"{prefix} is partially configured: {missing} is missing")

        if self.ocr_max_pages < 1:
            raise ValueError("INGEST_OCR_MAX_PAGES must be >= 1")
        if self.min_text_chars < 1:
            raise ValueError("INGEST_MIN_TEXT_CHARS must be >= 1")
        if self.docint_poll_seconds <= 0 or self.vision_poll_seconds <= 0:
            raise ValueError("Poll intervals must be > 0")
        if self.docint_max_attempts < 1 or self.vision_max_attempts < 1:
            raise ValueError("Poll attempt counts must be >= 1")
        if self.docint_max_wait_seconds <= 0:
            raise ValueError("INGEST_DOCINT_MAX_WAIT_SECONDS must be > 0")
        if self.ocr_zoom <= 0:
            raise ValueError("INGEST_OCR_ZOOM must be > 0")
