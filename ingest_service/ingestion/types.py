from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import StrEnum

from ingest_service.ingestion.errors import InvalidDocumentError


class MimeClass(StrEnum):
    PDF = "pdf"
    IMAGE = "image"
    DOCX = "docx"
    TEXT = "text"
    JSON = "json"
    UNSUPPORTED = "unsupported"


class StrategyName(StrEnum):
    PDF_PYPDF = "pdf_pypdf"
    PDF_PYMUPDF = "pdf_pymupdf"
    DOCUMENT_INTELLIGENCE = "document_intelligence"
    VISION_OCR = "vision_ocr"
    PDF_LOCAL_OCR = "pdf_local_ocr"
    IMAGE_LOCAL_OCR = "image_local_ocr"
    DOCX = "docx"
    TEXT = "text"
    JSON = "json"


class ErrorReason(StrEnum):
    TIMEOUT = "timeout"
    MEMORY = "memory"
    REMOTE_FAILURE = "remote_failure"
    OTHER = "other"


class FailureCode(StrEnum):
    UNSUPPORTED_MIME = "UNSUPPORTED_MIME"
    INVALID_DOCUMENT = "INVALID_DOCUMENT"


PATH_NONE = "none"


@dataclass(frozen=True)
class Document:
    data: bytes
    mime_type: str

    @classmethod
    def from_base64(cls, content: str, mime_type: str) -> Document:
        try:
            data = base64.b64decode(content, validate=False)
        except (binascii.Error, ValueError) as e:
            raise InvalidDocumentError(f"Document content is not valid base64: {e}") from e
        return cls(data=data, mime_type=mime_type)


@dataclass(frozen=True)
class ExtractOptions:
    max_ocr_pages: int | None = None
    force_ocr: bool = False


@dataclass(frozen=True)
class ExtractionAttemptResult:
    strategy: StrategyName
    text: str
    succeeded: bool
    error_reason: ErrorReason | None = None
    duration_ms: float = 0.0


@dataclass(frozen=True)
class ExtractionOutcome:
    text: str | None
    path_taken: str
    low_confidence: bool
    failure: FailureCode | None = None
    attempts: tuple[ExtractionAttemptResult, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AnalysisOutcome:
    text: str | None
    low_confidence_document: bool
