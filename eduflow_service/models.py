"""Pydantic request/response schemas for the EduFlow content API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from eduflow_service.export.types import ArtifactKind

# -- Ingest -------------------------------------------------------------------


class IngestRequest(BaseModel):
    remote_ref: str = Field(
        ..., min_length=1, max_length=2048, description="gs://bucket/object or https URL"
    )
    declared_media_type: str = Field(..., min_length=1, max_length=255)
    size_bytes: int | None = Field(None, ge=0)


class IngestResponse(BaseModel):
    transcript_id: str
    source_document_id: str
    text: str
    warnings: list[str] = Field(default_factory=list)
    extraction: dict[str, Any] = Field(default_factory=dict)


# -- Documents / transcripts --------------------------------------------------


class DocumentSummary(BaseModel):
    id: str
    remote_ref: str
    declared_media_type: str
    size_bytes: int | None = None
    created_at: datetime | None = None


class DocumentListResponse(BaseModel):
    documents: list[DocumentSummary]
    total: int


class TranscriptResponse(BaseModel):
    id: str
    source_document_id: str
    content: str
    created_at: datetime | None = None


class TranscriptListResponse(BaseModel):
    transcripts: list[TranscriptResponse]


class DeleteResponse(BaseModel):
    deleted: bool
    document_id: str


# -- Export -------------------------------------------------------------------


class ExportRequest(BaseModel):
    artifact_id: str = Field(..., min_length=1, max_length=64)
    target_format: str = Field(..., min_length=1, max_length=32, description="e.g. csv, anki, pdf")


class ExportFormatsResponse(BaseModel):
    kind: ArtifactKind
    formats: list[str]


# -- Health / errors ----------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    error: str | None = None


class ErrorResponse(BaseModel):
    detail: str
    error: str
