from __future__ import annotations

import io

import docx  # python-docx

from ingest_service.ingestion.extractors.base import Strategy
from ingest_service.ingestion.types import Document, ExtractOptions, StrategyName


class DocxStrategy(Strategy):
    name = StrategyName.DOCX

    def try_extract(self, document: Document, options: ExtractOptions) -> str:
        d = docx.Document(io.BytesIO(document.data))
        parts: list[str] = []
        for p in d.paragraphs:
            if p.text and p.text.strip():
                parts.append(p.text)
        # Policy schedules are usually tables; keep one line per row
        for table in d.tables:
            for row in table.rows:
                cells = [c.text.strip() for c in row.cells if c.text and c.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))
        return "\n".join(parts)
