from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ingest-extract",
        description="Extract text (and optionally policy fields) from a local document",
    )

    p.add_argument("file", help="Path to the document to extract")
    p.add_argument(
        "--mime-type",
        default=None,
        help="MIME type of the document (default: guessed from the file name)",
    )
    p.add_argument("--ocr-pages", type=int, default=None, help="Override INGEST_OCR_MAX_PAGES")
    p.add_argument("--force-ocr", action="store_true", help="Run local PDF OCR even if disabled")

    mode = p.add_mutually_exclusive_group()
    mode.add_argument(
        "--analysis",
        action="store_true",
        help="Single-pass mode: native text or one remote job, never the OCR pool",
    )
    mode.add_argument("--fields", action="store_true", help="Also print heuristic policy fields")

    p.add_argument("--log-level", default="WARNING", help="Python logging level (INFO, DEBUG, ...)")
    return p
