"""FastAPI entry point for the EduFlow content service.

Endpoints:
- POST   /v1/ingest                        - Fetch, extract and store a new transcript
- GET    /v1/documents                     - List the caller's source documents
- GET    /v1/documents/{id}/transcript     - Latest transcript of a document
- GET    /v1/documents/{id}/transcripts    - All transcript versions, newest first
- POST   /v1/documents/{id}/transcripts    - Re-extract, appending a new version
- DELETE /v1/documents/{id}                - Delete a document and its transcripts
- POST   /v1/export                        - Serialize a generated artifact to a file
- GET    /v1/export/formats?kind=          - Export formats available for a kind
- GET    /liveness                         - Health check
- GET    /readiness                        - DB connectivity check
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, cast

import asyncpg
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from eduflow_service.auth import Identity, get_identity, is_public_path, require_auth_on_cloud_run
from eduflow_service.config import (
    EDUFLOW_CORS_ALLOW_CREDENTIALS,
    EDUFLOW_CORS_ALLOW_HEADERS,
    EDUFLOW_CORS_ALLOW_METHODS,
    EDUFLOW_CORS_ALLOW_ORIGINS,
)
from eduflow_service.db import check_db_connection, close_pool, get_pool, owner_connection
from eduflow_service.errors import (
    ArtifactNotFoundError,
    ContentPipelineError,
    DocumentNotFoundError,
)
from eduflow_service.export.dispatcher import available_formats, serialize
from eduflow_service.export.types import ArtifactKind
from eduflow_service.ingestion.runner import IngestionRunner
from eduflow_service.ingestion.storage import StorageFetcher
from eduflow_service.ingestion.types import IngestResult, Transcript
from eduflow_service.logging_config import generate_request_id, request_id_var, setup_logging
from eduflow_service.models import (
    DeleteResponse,
    DocumentListResponse,
    DocumentSummary,
    ErrorResponse,
    ExportFormatsResponse,
    ExportRequest,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    TranscriptListResponse,
    TranscriptResponse,
)
from eduflow_service.stores.transcript_store import PgTranscriptRepository, TranscriptStore

logger = logging.getLogger(__name__)

_store = TranscriptStore()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: build the pool and ingestion runner, close on shutdown."""
    setup_logging()
    require_auth_on_cloud_run()
    pool = await get_pool()
    app.state.pool = pool
    app.state.runner = IngestionRunner(
        fetcher=StorageFetcher(),
        repository=PgTranscriptRepository(pool, _store),
    )
    logger.info("EduFlow content service started")
    yield
    await close_pool()
    logger.info("EduFlow content service stopped")


app = FastAPI(
    title="EduFlow Content API",
    version="0.1.0",
    lifespan=lifespan,
)

# -- Rate limiting ------------------------------------------------------------

limiter = Limiter(key_func=get_remote_address, default_limits=["60/minute"])
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})


# -- Pipeline errors ----------------------------------------------------------


@app.exception_handler(ContentPipelineError)
async def _pipeline_error_handler(request: Request, exc: ContentPipelineError) -> JSONResponse:
    if exc.is_client_error:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.error(
            "Pipeline failure on %s %s: %s", request.method, request.url.path, exc.message,
            exc_info=exc,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, error=exc.error_code).model_dump(),
    )


if EDUFLOW_CORS_ALLOW_CREDENTIALS and "*" in EDUFLOW_CORS_ALLOW_ORIGINS:
    raise RuntimeError("Invalid CORS config: wildcard origin cannot be combined with credentials=true")

app.add_middleware(
    CORSMiddleware,
    allow_origins=EDUFLOW_CORS_ALLOW_ORIGINS,
    allow_credentials=EDUFLOW_CORS_ALLOW_CREDENTIALS,
    allow_methods=EDUFLOW_CORS_ALLOW_METHODS,
    allow_headers=EDUFLOW_CORS_ALLOW_HEADERS,
    expose_headers=["Content-Disposition", "x-request-id"],
)


# -- Body size limit ----------------------------------------------------------

_MAX_BODY_BYTES = 1 * 1024 * 1024  # 1 MB, requests carry references not files


@app.middleware("http")
async def body_size_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with bodies exceeding the size limit."""
    content_length = request.headers.get("content-length")
    if content_length is not None and int(content_length) > _MAX_BODY_BYTES:
        return JSONResponse(status_code=413, content={"detail": "Request body too large"})
    return await call_next(request)


# -- Auth middleware ----------------------------------------------------------


@app.middleware("http")
async def auth_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Enforce authentication on all non-public paths."""
    if request.method == "OPTIONS" or is_public_path(request.url.path):
        return await call_next(request)

    try:
        identity = await get_identity(request)
        request.state.identity = identity
    except HTTPException as exc:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    except Exception as e:
        logger.warning("Auth middleware error: %s", e)
        return JSONResponse(status_code=401, content={"detail": "Authentication failed"})

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


# -- Dependencies -------------------------------------------------------------


def _get_identity(request: Request) -> Identity:
    """Dependency: extract identity from request state (set by middleware)."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return cast(Identity, identity)


def _get_pool(request: Request) -> asyncpg.Pool:
    pool = getattr(request.app.state, "pool", None)
    if pool is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return cast(asyncpg.Pool, pool)


def _get_runner(request: Request) -> IngestionRunner:
    runner = getattr(request.app.state, "runner", None)
    if runner is None:
        raise HTTPException(status_code=503, detail="Ingestion unavailable")
    return cast(IngestionRunner, runner)


def _transcript_response(t: Transcript) -> TranscriptResponse:
    return TranscriptResponse(
        id=t.id,
        source_document_id=t.source_document_id,
        content=t.content,
        created_at=t.created_at,
    )


def _ingest_response(result: IngestResult) -> IngestResponse:
    return IngestResponse(
        transcript_id=result.transcript.id,
        source_document_id=result.transcript.source_document_id,
        text=result.transcript.content,
        warnings=list(result.warnings),
        extraction=result.extraction_meta,
    )


# -- Health -------------------------------------------------------------------


@app.get("/liveness", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/readiness", response_model=HealthResponse)
async def readiness() -> HealthResponse:
    db_ok = await check_db_connection()
    if not db_ok:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return HealthResponse(status="ok")


# -- Ingest -------------------------------------------------------------------


@app.post("/v1/ingest", response_model=IngestResponse)
@limiter.limit("10/minute")
async def ingest(
    request: Request,
    body: IngestRequest,
    identity: Annotated[Identity, Depends(_get_identity)],
    runner: Annotated[IngestionRunner, Depends(_get_runner)],
) -> IngestResponse:
    """Fetch the referenced file, extract its text and append a transcript."""
    result = await runner.ingest(
        remote_ref=body.remote_ref.strip(),
        declared_media_type=body.declared_media_type,
        owner_id=identity.user_id,
        size_bytes=body.size_bytes,
    )
    return _ingest_response(result)


# -- Documents ----------------------------------------------------------------


@app.get("/v1/documents", response_model=DocumentListResponse)
async def list_documents(
    identity: Annotated[Identity, Depends(_get_identity)],
    pool: Annotated[asyncpg.Pool, Depends(_get_pool)],
    limit: int = 50,
    offset: int = 0,
) -> DocumentListResponse:
    """List the caller's documents (owner filter enforced by RLS)."""
    limit = min(max(limit, 1), 200)
    offset = max(offset, 0)
    async with owner_connection(pool, identity.user_id) as conn:
        docs, total = await _store.list_source_documents(conn, limit=limit, offset=offset)

    return DocumentListResponse(
        documents=[
            DocumentSummary(
                id=d.id,
                remote_ref=d.remote_ref,
                declared_media_type=d.declared_media_type,
                size_bytes=d.size_bytes,
                created_at=d.created_at,
            )
            for d in docs
        ],
        total=total,
    )


@app.get("/v1/documents/{doc_id}/transcript", response_model=TranscriptResponse)
async def latest_transcript(
    doc_id: str,
    identity: Annotated[Identity, Depends(_get_identity)],
    pool: Annotated[asyncpg.Pool, Depends(_get_pool)],
) -> TranscriptResponse:
    """Most recent transcript of a document."""
    async with owner_connection(pool, identity.user_id) as conn:
        transcript = await _store.latest_transcript(conn, doc_id)
    if transcript is None:
        raise DocumentNotFoundError(f"No transcript for document {doc_id}")
    return _transcript_response(transcript)


@app.get("/v1/documents/{doc_id}/transcripts", response_model=TranscriptListResponse)
async def list_transcripts(
    doc_id: str,
    identity: Annotated[Identity, Depends(_get_identity)],
    pool: Annotated[asyncpg.Pool, Depends(_get_pool)],
) -> TranscriptListResponse:
    async with owner_connection(pool, identity.user_id) as conn:
        doc = await _store.get_source_document(conn, doc_id)
        if doc is None:
            raise DocumentNotFoundError(f"Document not found: {doc_id}")
        transcripts = await _store.list_transcripts(conn, doc_id)
    return TranscriptListResponse(transcripts=[_transcript_response(t) for t in transcripts])


@app.post("/v1/documents/{doc_id}/transcripts", response_model=IngestResponse)
@limiter.limit("10/minute")
async def reingest_document(
    request: Request,
    doc_id: str,
    identity: Annotated[Identity, Depends(_get_identity)],
    runner: Annotated[IngestionRunner, Depends(_get_runner)],
) -> IngestResponse:
    """Extract an existing document again; earlier versions are kept."""
    result = await runner.reingest(source_document_id=doc_id, owner_id=identity.user_id)
    return _ingest_response(result)


@app.delete("/v1/documents/{doc_id}", response_model=DeleteResponse)
async def delete_document(
    doc_id: str,
    identity: Annotated[Identity, Depends(_get_identity)],
    pool: Annotated[asyncpg.Pool, Depends(_get_pool)],
) -> DeleteResponse:
    """Delete a document; its transcripts are removed by cascade."""
    async with owner_connection(pool, identity.user_id) as conn:
        deleted = await _store.delete_source_document(conn, doc_id)

    if not deleted:
        raise DocumentNotFoundError(f"Document not found: {doc_id}")

    return DeleteResponse(deleted=True, document_id=doc_id)


# -- Export -------------------------------------------------------------------


@app.get("/v1/export/formats", response_model=ExportFormatsResponse)
async def export_formats(
    kind: ArtifactKind,
    identity: Annotated[Identity, Depends(_get_identity)],
) -> ExportFormatsResponse:
    return ExportFormatsResponse(kind=kind, formats=available_formats(kind))


@app.post("/v1/export")
@limiter.limit("30/minute")
async def export_artifact(
    request: Request,
    body: ExportRequest,
    identity: Annotated[Identity, Depends(_get_identity)],
    pool: Annotated[asyncpg.Pool, Depends(_get_pool)],
) -> Response:
    """Serialize a stored artifact and return it as a download."""
    async with owner_connection(pool, identity.user_id) as conn:
        artifact = await _store.get_artifact(conn, body.artifact_id)
    if artifact is None:
        raise ArtifactNotFoundError(f"Artifact not found: {body.artifact_id}")

    out = await asyncio.to_thread(
        serialize,
        artifact.kind,
        body.target_format,
        artifact.content,
        title=artifact.title,
    )
    return Response(
        content=out.buffer,
        media_type=out.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{out.file_name}"'},
    )
