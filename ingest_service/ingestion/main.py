from __future__ import annotations

import json
import logging
import mimetypes
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ingest_service.fields.policy import extract_policy_fields
from ingest_service.ingestion.cli import build_parser
from ingest_service.ingestion.config import IngestConfig
from ingest_service.ingestion.mime import DOCX_MIME
from ingest_service.ingestion.orchestrator import ExtractionOrchestrator
from ingest_service.ingestion.types import Document, ExtractOptions
from ingest_service.logging_config import setup_logging

# mimetypes on slim images often lacks the OOXML entries
_FALLBACK_MIME = {".docx": DOCX_MIME, ".json": "application/json", ".md": "text/markdown"}


def _guess_mime(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or _FALLBACK_MIME.get(path.suffix.lower(), "application/octet-stream")


def run(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper())
    logger = logging.getLogger("ingest_service.ingestion")

    cfg = IngestConfig.from_env()
    cfg.validate()

    path = Path(args.file)
    if not path.is_file():
        parser.error(f"no such file: {path}")
    if args.ocr_pages is not None and args.ocr_pages < 1:
        parser.error("--ocr-pages must be >= 1")

    document = Document(data=path.read_bytes(), mime_type=args.mime_type or _guess_mime(path))
    orchestrator = ExtractionOrchestrator.from_config(cfg)

    payload: dict[str, Any]
    if args.analysis:
        analysis = orchestrator.extract_for_analysis(document)
        text = analysis.text
        payload = {"text": text, "low_confidence_document": analysis.low_confidence_document}
    else:
        options = ExtractOptions(max_ocr_pages=args.ocr_pages, force_ocr=bool(args.force_ocr))
        outcome = orchestrator.extract(document, options)
        text = outcome.text
        payload = {
            "text": text,
            "path_taken": outcome.path_taken,
            "low_confidence": outcome.low_confidence,
            "failure": outcome.failure,
        }
        if args.fields:
            payload["fields"] = extract_policy_fields(text).as_dict()

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    if not text:
        logger.warning("No text extracted from %s (mime=%s)", path, document.mime_type)
        return 2
    return 0


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
