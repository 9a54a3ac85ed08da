from __future__ import annotations

import logging

from ingest_service.ingestion.extractors.base import Strategy
from ingest_service.ingestion.ocr.tesseract import BILINGUAL, ENGLISH_ONLY, TesseractEngine
from ingest_service.ingestion.types import Document, ExtractOptions, StrategyName

logger = logging.getLogger(__name__)


class ImageLocalOcrStrategy(Strategy):
    name = StrategyName.IMAGE_LOCAL_OCR
    visual = True

    def __init__(self, *, engine: TesseractEngine) -> None:
        self._engine = engine

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        try:
            return self._engine.recognize_image_bytes(document.data, BILINGUAL)
        except Exception as e:
            logger.warning("Bilingual OCR failed, retrying English only: %s", str(e)[:80])
        return self._engine.recognize_image_bytes(document.data, ENGLISH_ONLY)
