from __future__ import annotations

from ingest_service.ingestion.extractors.base import Strategy
from ingest_service.ingestion.types import Document, ExtractOptions, StrategyName


class TextStrategy(Strategy):
    name = StrategyName.TEXT

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        return document.data.decode("utf-8", errors="ignore")


class JsonStrategy(TextStrategy):
    # Passed through verbatim; downstream consumers read the raw JSON text
    name = StrategyName.JSON
