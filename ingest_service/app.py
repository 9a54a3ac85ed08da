"""FastAPI entry point for the document ingestion service.

Endpoints:
- POST /v1/extract/text      — Cost-ordered extraction cascade
- POST /v1/extract/analysis  — Single-pass extraction for downstream analysis
- POST /v1/policy/fields     — Heuristic policy fields from free text
- POST /v1/policy/extract    — Extract a document, then its policy fields
- POST /v1/facts/protect     — Replace factual tokens with placeholders
- POST /v1/facts/restore     — Put protected facts back, report dropped ones
- GET  /liveness             — Health check
- GET  /readiness            — Strategy availability
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ingest_service.config import (
    INGEST_CORS_ALLOW_CREDENTIALS,
    INGEST_CORS_ALLOW_HEADERS,
    INGEST_CORS_ALLOW_METHODS,
    INGEST_CORS_ALLOW_ORIGINS,
    INGEST_EXTRACT_RATE_LIMIT,
    INGEST_MAX_BODY_BYTES,
    INGEST_RATE_LIMIT,
)
from ingest_service.facts.protection import protect_facts, restore_facts
from ingest_service.fields.policy import PolicyFields, extract_policy_fields, merge_policy_fields
from ingest_service.ingestion.config import IngestConfig
from ingest_service.ingestion.errors import InvalidDocumentError
from ingest_service.ingestion.orchestrator import ExtractionOrchestrator
from ingest_service.ingestion.types import Document, ExtractOptions
from ingest_service.logging_config import generate_request_id, request_id_var, setup_logging
from ingest_service.models import (
    AnalysisResponse,
    AttemptModel,
    DocumentRequest,
    ExtractTextRequest,
    ExtractTextResponse,
    HealthResponse,
    PolicyExtractRequest,
    PolicyFieldsModel,
    PolicyTextRequest,
    ProtectRequest,
    ProtectResponse,
    RestoreRequest,
    RestoreResponse,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_orchestrator() -> ExtractionOrchestrator:
    """Dependency: one orchestrator per process, built from the environment."""
    cfg = IngestConfig.from_env()
    cfg.validate()
    return ExtractionOrchestrator.from_config(cfg)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: configure logging and fail fast on bad config."""
    setup_logging()
    orchestrator = get_orchestrator()
    logger.info("Ingestion service started strategies=%s", orchestrator.strategy_availability())
    yield
    logger.info("Ingestion service stopped")


app = FastAPI(
    title="Document Ingestion API",
    version="0.1.0",
    lifespan=lifespan,
)

# -- Rate limiting ------------------------------------------------------------

limiter = Limiter(key_func=get_remote_address, default_limits=[INGEST_RATE_LIMIT])
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})


if INGEST_CORS_ALLOW_CREDENTIALS and "*" in INGEST_CORS_ALLOW_ORIGINS:
    raise RuntimeError("Invalid CORS config: wildcard origin cannot be combined with credentials=true")

app.add_middleware(
    CORSMiddleware,
    allow_origins=INGEST_CORS_ALLOW_ORIGINS,
    allow_credentials=INGEST_CORS_ALLOW_CREDENTIALS,
    allow_methods=INGEST_CORS_ALLOW_METHODS,
    allow_headers=INGEST_CORS_ALLOW_HEADERS,
)


# -- Body size limit ----------------------------------------------------------


@app.middleware("http")
async def body_size_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with bodies exceeding the size limit."""
    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit() and int(content_length) > INGEST_MAX_BODY_BYTES:
        return JSONResponse(status_code=413, content={"detail": "Request body too large"})
    return await call_next(request)


# -- Request ID middleware ----------------------------------------------------


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Attach a unique request ID for trace correlation."""
    request_id = request.headers.get("x-request-id") or generate_request_id()
    request.state.request_id = request_id
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["x-request-id"] = request_id
    return response


Orchestrator = Annotated[ExtractionOrchestrator, Depends(get_orchestrator)]


def _decode(body: DocumentRequest) -> Document:
    try:
        return Document.from_base64(body.content_base64, body.mime_type)
    except InvalidDocumentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


# -- Health -------------------------------------------------------------------


@app.get("/liveness", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/readiness", response_model=HealthResponse)
async def readiness(orchestrator: Orchestrator) -> HealthResponse:
    strategies = orchestrator.strategy_availability()
    if not any(strategies.values()):
        return HealthResponse(status="degraded", strategies=strategies, error="No extraction strategy available")
    return HealthResponse(status="ok", strategies=strategies)


# -- Extraction ---------------------------------------------------------------


@app.post("/v1/extract/text", response_model=ExtractTextResponse)
@limiter.limit(INGEST_EXTRACT_RATE_LIMIT)
async def extract_text(
    request: Request,
    body: ExtractTextRequest,
    orchestrator: Orchestrator,
) -> ExtractTextResponse:
    """Walk the extraction cascade until a strategy returns acceptable text."""
    document = _decode(body)
    options = ExtractOptions(max_ocr_pages=body.options.ocr_pages, force_ocr=body.options.force_ocr)
    outcome = await asyncio.to_thread(orchestrator.extract, document, options)

    return ExtractTextResponse(
        text=outcome.text,
        path_taken=outcome.path_taken,
        low_confidence=outcome.low_confidence,
        failure=outcome.failure,
        attempts=[
            AttemptModel(
                strategy=a.strategy,
                succeeded=a.succeeded,
                text_length=len(a.text),
                error_reason=a.error_reason,
                duration_ms=round(a.duration_ms, 1),
            )
            for a in outcome.attempts
        ],
    )


@app.post("/v1/extract/analysis", response_model=AnalysisResponse)
@limiter.limit(INGEST_EXTRACT_RATE_LIMIT)
async def extract_for_analysis(
    request: Request,
    body: DocumentRequest,
    orchestrator: Orchestrator,
) -> AnalysisResponse:
    """Native text if present, otherwise exactly one remote recognition job."""
    document = _decode(body)
    outcome = await asyncio.to_thread(orchestrator.extract_for_analysis, document)
    return AnalysisResponse(text=outcome.text, low_confidence_document=outcome.low_confidence_document)


# -- Policy fields ------------------------------------------------------------


@app.post("/v1/policy/fields", response_model=PolicyFieldsModel)
async def policy_fields(body: PolicyTextRequest) -> PolicyFieldsModel:
    return PolicyFieldsModel(**extract_policy_fields(body.text).as_dict())


@app.post("/v1/policy/extract", response_model=PolicyFieldsModel)
@limiter.limit(INGEST_EXTRACT_RATE_LIMIT)
async def policy_extract(
    request: Request,
    body: PolicyExtractRequest,
    orchestrator: Orchestrator,
) -> PolicyFieldsModel:
    """Extract a document's text, then merge heuristic fields with any supplied hints."""
    document = _decode(body)
    outcome = await asyncio.to_thread(orchestrator.extract, document, ExtractOptions())
    if not outcome.text:
        raise HTTPException(status_code=400, detail=f"No text could be extracted ({outcome.failure})")

    heuristic = extract_policy_fields(outcome.text)
    hints = PolicyFields(**body.hints.model_dump()) if body.hints is not None else None
    merged = merge_policy_fields(hints, heuristic)
    return PolicyFieldsModel(**merged.as_dict())


# -- Fact protection ----------------------------------------------------------


@app.post("/v1/facts/protect", response_model=ProtectResponse)
async def facts_protect(body: ProtectRequest) -> ProtectResponse:
    result = protect_facts(body.text)
    return ProtectResponse(protected_text=result.protected_text, map=result.placeholders)


@app.post("/v1/facts/restore", response_model=RestoreResponse)
async def facts_restore(body: RestoreRequest) -> RestoreResponse:
    result = restore_facts(body.protected_text, body.map)
    return RestoreResponse(restored_text=result.restored_text, missing_placeholders=result.missing_placeholders)
