"""Cost-ordered extraction cascade.

The cascade is a flat table of ``CascadeStep`` rows. Each row names a strategy,
the MIME classes it serves, and the conditions under which it may run; the
orchestrator filters the table for the document at hand and walks it in
order, stopping at the first acceptable text.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ingest_service.ingestion.config import IngestConfig
from ingest_service.ingestion.errors import InvalidDocumentError
from ingest_service.ingestion.events import EventSink, log_strategy_event
from ingest_service.ingestion.extractors.base import Strategy, run_attempt
from ingest_service.ingestion.extractors.cloud import DocumentIntelligenceStrategy, VisionOcrStrategy
from ingest_service.ingestion.extractors.docx import DocxStrategy
from ingest_service.ingestion.extractors.image import ImageLocalOcrStrategy
from ingest_service.ingestion.extractors.pdf import PdfLocalOcrStrategy, PyMuPdfTextStrategy, PypdfTextStrategy
from ingest_service.ingestion.extractors.text import JsonStrategy, TextStrategy
from ingest_service.ingestion.mime import classify_mime
from ingest_service.ingestion.ocr.document_intelligence import DocIntConfig, DocumentIntelligenceClient
from ingest_service.ingestion.ocr.tesseract import TesseractEngine
from ingest_service.ingestion.ocr.vision import VisionConfig, VisionReadClient
from ingest_service.ingestion.types import (
    PATH_NONE,
    AnalysisOutcome,
    Document,
    ExtractionAttemptResult,
    ExtractionOutcome,
    ExtractOptions,
    FailureCode,
    MimeClass,
)

logger = logging.getLogger(__name__)


def _always(options: ExtractOptions) -> bool:
    return True


@dataclass(frozen=True)
class CascadeStep:
    strategy: Strategy
    mime_classes: frozenset[MimeClass]
    # Text-layer results below the length threshold are inconclusive
    text_layer: bool = False
    # Disabled in constrained deployments
    unconstrained_only: bool = False
    # Participates in the single-pass analysis mode
    analysis: bool = False
    enabled: Callable[[ExtractOptions], bool] = field(default=_always)

    def applies(self, mime_class: MimeClass, options: ExtractOptions, *, constrained: bool) -> bool:
        if mime_class not in self.mime_classes:
            return False
        if constrained and self.unconstrained_only:
            return False
        return self.enabled(options)


def build_cascade(
    cfg: IngestConfig,
    *,
    docint: DocumentIntelligenceClient | None = None,
    vision: VisionReadClient | None = None,
    engine: TesseractEngine | None = None,
) -> list[CascadeStep]:
    """Default strategy table, cheapest first."""
    pdf = frozenset({MimeClass.PDF})
    image = frozenset({MimeClass.IMAGE})
    scanned = frozenset({MimeClass.PDF, MimeClass.IMAGE})

    if docint is None and cfg.docint_configured:
        docint = DocumentIntelligenceClient(
            cfg=DocIntConfig(
                endpoint=cfg.docint_endpoint or "",
                key=cfg.docint_key or "",
                api_version=cfg.docint_api_version,
                poll_seconds=cfg.docint_poll_seconds,
                max_wait_seconds=cfg.docint_max_wait_seconds,
                max_attempts=cfg.docint_max_attempts,
                timeout_seconds=cfg.http_timeout_seconds,
            )
        )
    if vision is None and cfg.vision_configured:
        vision = VisionReadClient(
            cfg=VisionConfig(
                endpoint=cfg.vision_endpoint or "",
                key=cfg.vision_key or "",
                poll_seconds=cfg.vision_poll_seconds,
                max_attempts=cfg.vision_max_attempts,
                timeout_seconds=cfg.http_timeout_seconds,
            )
        )
    if engine is None:
        engine = TesseractEngine(tesseract_cmd=cfg.tesseract_cmd, zoom=cfg.ocr_zoom)

    steps = [
        CascadeStep(PypdfTextStrategy(), pdf, text_layer=True, analysis=True),
        CascadeStep(PyMuPdfTextStrategy(), pdf, text_layer=True, analysis=True),
    ]
    if docint is not None:
        steps.append(CascadeStep(DocumentIntelligenceStrategy(client=docint), scanned, analysis=True))
    if vision is not None:
        steps.append(CascadeStep(VisionOcrStrategy(client=vision), scanned, unconstrained_only=True))
    steps += [
        CascadeStep(
            PdfLocalOcrStrategy(engine=engine, default_max_pages=cfg.ocr_max_pages),
            pdf,
            unconstrained_only=True,
            enabled=lambda o: cfg.local_ocr_enabled or o.force_ocr,
        ),
        CascadeStep(ImageLocalOcrStrategy(engine=engine), image, unconstrained_only=True),
        CascadeStep(DocxStrategy(), frozenset({MimeClass.DOCX}), analysis=True),
        CascadeStep(TextStrategy(), frozenset({MimeClass.TEXT}), analysis=True),
        CascadeStep(JsonStrategy(), frozenset({MimeClass.JSON}), analysis=True),
    ]
    return steps


class ExtractionOrchestrator:
    def __init__(
        self,
        *,
        steps: Sequence[CascadeStep],
        min_text_chars: int = 200,
        constrained_mode: bool = False,
        sink: EventSink = log_strategy_event,
    ) -> None:
        self._steps = list(steps)
        self._min_chars = max(1, int(min_text_chars))
        self._constrained = constrained_mode
        self._sink = sink

    @classmethod
    def from_config(cls, cfg: IngestConfig, *, sink: EventSink = log_strategy_event) -> ExtractionOrchestrator:
        return cls(
            steps=build_cascade(cfg),
            min_text_chars=cfg.min_text_chars,
            constrained_mode=cfg.constrained_mode,
            sink=sink,
        )

    def plan(self, mime_class: MimeClass, options: ExtractOptions, *, analysis: bool = False) -> list[CascadeStep]:
        return [
            s
            for s in self._steps
            if (s.analysis or not analysis) and s.applies(mime_class, options, constrained=self._constrained)
        ]

    def strategy_availability(self) -> dict[str, bool]:
        """Which strategies could run at all under the current deployment mode."""
        return {str(s.strategy.name): not (self._constrained and s.unconstrained_only) for s in self._steps}

    # -- Cascade --------------------------------------------------------------

    def extract(self, document: Document, options: ExtractOptions | None = None) -> ExtractionOutcome:
        options = options or ExtractOptions()
        mime_class = classify_mime(document.mime_type)
        if mime_class is MimeClass.UNSUPPORTED:
            logger.warning("mime=%s path=unsupported reason=%s", document.mime_type, FailureCode.UNSUPPORTED_MIME)
            return ExtractionOutcome(
                text=None,
                path_taken=PATH_NONE,
                low_confidence=False,
                failure=FailureCode.UNSUPPORTED_MIME,
            )

        attempts: list[ExtractionAttemptResult] = []
        ran_visual = False
        best: tuple[CascadeStep, str] | None = None

        for step in self.plan(mime_class, options):
            attempt = run_attempt(step.strategy, document, options, self._sink)
            attempts.append(attempt)
            ran_visual = ran_visual or step.strategy.visual
            if not attempt.text:
                continue
            if not step.text_layer or len(attempt.text) >= self._min_chars:
                return self._outcome(mime_class, step, attempt.text, attempts, step.strategy.visual)
            if best is None or len(attempt.text) > len(best[1]):
                best = (step, attempt.text)

        if best is not None:
            # Only inconclusive text-layer output; still better than nothing
            return self._outcome(mime_class, best[0], best[1], attempts, ran_visual)

        logger.warning(
            "mime=%s path=%s textLength=0 reason=%s",
            mime_class,
            PATH_NONE,
            FailureCode.INVALID_DOCUMENT,
        )
        return ExtractionOutcome(
            text=None,
            path_taken=PATH_NONE,
            low_confidence=ran_visual,
            failure=FailureCode.INVALID_DOCUMENT,
            attempts=tuple(attempts),
        )

    def _outcome(
        self,
        mime_class: MimeClass,
        step: CascadeStep,
        text: str,
        attempts: list[ExtractionAttemptResult],
        low_confidence: bool,
    ) -> ExtractionOutcome:
        logger.info(
            "mime=%s path=%s textLength=%d lowConfidence=%s",
            mime_class,
            step.strategy.name,
            len(text),
            low_confidence,
        )
        return ExtractionOutcome(
            text=text,
            path_taken=str(step.strategy.name),
            low_confidence=low_confidence,
            attempts=tuple(attempts),
        )

    # -- Single-pass analysis -------------------------------------------------

    def extract_for_analysis(self, document: Document) -> AnalysisOutcome:
        """Native text if any exists, otherwise exactly one remote job.

        Never cascades into the OCR pool and never retries. Anything that had
        to be recognised from pixels is reported as low confidence.
        """
        options = ExtractOptions()
        mime_class = classify_mime(document.mime_type)
        if mime_class is MimeClass.UNSUPPORTED:
            logger.warning("analysis mime=%s path=unsupported reason=%s", document.mime_type, FailureCode.UNSUPPORTED_MIME)
            return AnalysisOutcome(text=None, low_confidence_document=False)

        steps = self.plan(mime_class, options, analysis=True)

        if mime_class not in (MimeClass.PDF, MimeClass.IMAGE):
            for step in steps:
                attempt = run_attempt(step.strategy, document, options, self._sink)
                return AnalysisOutcome(text=attempt.text or None, low_confidence_document=False)
            return AnalysisOutcome(text=None, low_confidence_document=False)

        for step in (s for s in steps if s.text_layer):
            attempt = run_attempt(step.strategy, document, options, self._sink)
            if attempt.text:
                return AnalysisOutcome(text=attempt.text, low_confidence_document=False)

        remote = [s for s in steps if not s.text_layer]
        if not remote:
            logger.warning("analysis mime=%s reason=%s (no remote recognition configured)", mime_class, FailureCode.INVALID_DOCUMENT)
            return AnalysisOutcome(text=None, low_confidence_document=True)

        attempt = run_attempt(remote[0].strategy, document, options, self._sink)
        if not attempt.text:
            logger.warning("analysis mime=%s reason=%s (remote returned no text)", mime_class, FailureCode.INVALID_DOCUMENT)
        return AnalysisOutcome(text=attempt.text or None, low_confidence_document=True)

    # -- Base64 entrypoints ---------------------------------------------------

    def text_from_base64(
        self,
        content: str | None,
        mime_type: str | None,
        options: ExtractOptions | None = None,
    ) -> str | None:
        if not content or not mime_type:
            return None
        try:
            document = Document.from_base64(content, mime_type)
        except InvalidDocumentError as e:
            logger.warning("Rejected upload: %s", e)
            return None
        return self.extract(document, options).text

    def analysis_from_base64(self, content: str | None, mime_type: str | None) -> AnalysisOutcome:
        if not content or not mime_type:
            return AnalysisOutcome(text=None, low_confidence_document=False)
        try:
            document = Document.from_base64(content, mime_type)
        except InvalidDocumentError as e:
            logger.warning("Rejected upload: %s", e)
            return AnalysisOutcome(text=None, low_confidence_document=False)
        return self.extract_for_analysis(document)
