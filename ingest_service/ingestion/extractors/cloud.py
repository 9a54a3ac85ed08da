from __future__ import annotations

from ingest_service.ingestion.extractors.base import Strategy
from ingest_service.ingestion.ocr.document_intelligence import DocumentIntelligenceClient
from ingest_service.ingestion.ocr.vision import VisionReadClient
from ingest_service.ingestion.types import Document, ExtractOptions, StrategyName


class DocumentIntelligenceStrategy(Strategy):
    name = StrategyName.DOCUMENT_INTELLIGENCE
    visual = True

    def __init__(self, *, client: DocumentIntelligenceClient) -> None:
        self._client = client

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        return self._client.analyze(content=document.data, mime_type=document.mime_type)


class VisionOcrStrategy(Strategy):
    name = StrategyName.VISION_OCR
    visual = True

    def __init__(self, *, client: VisionReadClient) -> None:
        self._client = client

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        return self._client.read(content=document.data)
