from __future__ import annotations

import io

import fitz  # PyMuPDF
from pypdf import PdfReader

from ingest_service.ingestion.extractors.base import Strategy
from ingest_service.ingestion.ocr.tesseract import BILINGUAL, TesseractEngine
from ingest_service.ingestion.types import Document, ExtractOptions, StrategyName


class PypdfTextStrategy(Strategy):
    """Primary text-layer parser."""

    name = StrategyName.PDF_PYPDF

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        r = PdfReader(io.BytesIO(document.data))
        parts: list[str] = []
        for p in r.pages:
            t = p.extract_text() or ""
            if t.strip():
                parts.append(t)
        return "\n".join(parts)


class PyMuPdfTextStrategy(Strategy):
    """Secondary text-layer parser; different engine, different failure modes."""

    name = StrategyName.PDF_PYMUPDF

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        with fitz.open(stream=document.data, filetype="pdf") as pdf:
            return "\n".join(page.get_text() for page in pdf)


class PdfLocalOcrStrategy(Strategy):
    name = StrategyName.PDF_LOCAL_OCR
    visual = True

    def __init__(self, *, engine: TesseractEngine, default_max_pages: int) -> None:
        self._engine = engine
        self._default_max_pages = default_max_pages

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        pages = options.max_ocr_pages
        if not pages or pages < 1:
            pages = self._default_max_pages
        return self._engine.recognize_pdf(document.data, max_pages=pages, mode=BILINGUAL)
