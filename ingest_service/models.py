"""Pydantic request/response schemas for the ingestion service API."""

from __future__ import annotations

from pydantic import BaseModel, Field

# -- Extraction ---------------------------------------------------------------


class ExtractOptionsModel(BaseModel):
    ocr_pages: int | None = Field(None, ge=1, le=50, description="Max pages to OCR locally")
    force_ocr: bool = Field(False, description="Run local PDF OCR even when disabled by default")


class DocumentRequest(BaseModel):
    content_base64: str = Field(..., min_length=1, description="Base64-encoded document bytes")
    mime_type: str = Field(..., min_length=1, max_length=255)


class ExtractTextRequest(DocumentRequest):
    options: ExtractOptionsModel = Field(default_factory=ExtractOptionsModel)


class AttemptModel(BaseModel):
    strategy: str
    succeeded: bool
    text_length: int
    error_reason: str | None = None
    duration_ms: float


class ExtractTextResponse(BaseModel):
    text: str | None
    path_taken: str
    low_confidence: bool
    failure: str | None = None
    attempts: list[AttemptModel]


class AnalysisResponse(BaseModel):
    text: str | None
    low_confidence_document: bool


# -- Policy fields ------------------------------------------------------------


class PolicyFieldsModel(BaseModel):
    insured_name: str = ""
    market_ref: str = ""
    line_slip_no: str = ""
    certificate_ref: str = ""
    policy_period_start: str = ""
    policy_period_end: str = ""
    retro_start: str = ""
    retro_end: str = ""


class PolicyTextRequest(BaseModel):
    text: str = Field(..., max_length=2_000_000)


class PolicyExtractRequest(DocumentRequest):
    hints: PolicyFieldsModel | None = Field(None, description="Fields proposed by an external model")


# -- Fact protection ----------------------------------------------------------


class ProtectRequest(BaseModel):
    text: str = Field(..., max_length=2_000_000)


class ProtectResponse(BaseModel):
    protected_text: str
    map: dict[str, str]


class RestoreRequest(BaseModel):
    protected_text: str = Field(..., max_length=2_000_000)
    map: dict[str, str]


class RestoreResponse(BaseModel):
    restored_text: str
    missing_placeholders: list[str]


# -- Health -------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    strategies: dict[str, bool] | None = None
    error: str | None = None
