from __future__ import annotations

from ingest_service.ingestion.types import MimeClass

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
JSON_MIME = "application/json"


def classify_mime(mime_type: str | None) -> MimeClass:
    m = (mime_type or "").strip().lower()
    if not m:
        return MimeClass.UNSUPPORTED
    # Substring match: clients send "application/x-pdf" and friends
    if "pdf" in m:
        return MimeClass.PDF
    if m == DOCX_MIME:
        return MimeClass.DOCX
    if m.startswith("text/"):
        return MimeClass.TEXT
    if m == JSON_MIME:
        return MimeClass.JSON
    if m.startswith("image/"):
        return MimeClass.IMAGE
    return MimeClass.UNSUPPORTED


def document_intelligence_content_type(mime_type: str | None) -> str:
    m = (mime_type or "").lower()
    if "pdf" in m:
        return "application/pdf"
    if "jpeg" in m or "jpg" in m:
        return "image/jpeg"
    if "png" in m:
        return "image/png"
    if "tiff" in m or "tif" in m:
        return "image/tiff"
    if "bmp" in m:
        return "image/bmp"
    return "application/octet-stream"
