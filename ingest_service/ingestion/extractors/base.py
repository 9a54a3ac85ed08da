from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod

import httpx

from ingest_service.ingestion.errors import RemoteJobFailedError
from ingest_service.ingestion.events import EventSink, StrategyEvent
from ingest_service.ingestion.mime import classify_mime
from ingest_service.ingestion.types import (
    Document,
    ErrorReason,
    ExtractionAttemptResult,
    ExtractOptions,
    StrategyName,
)

logger = logging.getLogger(__name__)

_TIMEOUT_RE = re.compile(r"timeout|ETIMEDOUT|timed out", re.IGNORECASE)
_MEMORY_RE = re.compile(r"memory|allocation|heap", re.IGNORECASE)


class Strategy(ABC):
    name: StrategyName
    # True for anything that recognises pixels rather than reading a text layer
    visual: bool = False

    @abstractmethod
    def try_extract(self, document: Document, options: ExtractOptions) -> str: ...


def normalize_text(text: str) -> str:
    if not text:
        return ""
    text = text.replace("\x00", "")
    # Collapse very long runs of blank lines
    while "\n\n\n\n" in text:
        text = text.replace("\n\n\n\n", "\n\n\n")
    return text.strip()


def classify_failure(exc: BaseException) -> ErrorReason:
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return ErrorReason.TIMEOUT
    if isinstance(exc, MemoryError):
        return ErrorReason.MEMORY
    if isinstance(exc, RemoteJobFailedError):
        return ErrorReason.REMOTE_FAILURE

    msg = str(exc)[:100]
    if _TIMEOUT_RE.search(msg):
        return ErrorReason.TIMEOUT
    if _MEMORY_RE.search(msg):
        return ErrorReason.MEMORY
    return ErrorReason.OTHER


def run_attempt(
    strategy: Strategy,
    document: Document,
    options: ExtractOptions,
    sink: EventSink,
) -> ExtractionAttemptResult:
    """Invoke one strategy, never letting its failure escape.

    Every exception is classified and turned into an empty, unsuccessful
    attempt. Exactly one event is emitted per call.
    """
    started = time.perf_counter()
    reason: ErrorReason | None = None
    message: str | None = None
    try:
        text = normalize_text(strategy.try_extract(document, options) or "")
    except Exception as e:
        text = ""
        reason = classify_failure(e)
        message = f"{type(e).__name__}: {str(e)[:100]}"
        logger.debug("Strategy %s raised", strategy.name, exc_info=True)
    duration_ms = (time.perf_counter() - started) * 1000

    sink(
        StrategyEvent(
            strategy=strategy.name,
            mime_class=classify_mime(document.mime_type),
            succeeded=bool(text),
            duration_ms=duration_ms,
            text_length=len(text),
            error_reason=reason,
            error_message=message,
        )
    )
    return ExtractionAttemptResult(
        strategy=strategy.name,
        text=text,
        succeeded=bool(text),
        error_reason=reason,
        duration_ms=duration_ms,
    )
