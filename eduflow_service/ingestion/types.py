from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class DocType(str, Enum):
    PPTX = "pptx"
    DOCX = "docx"
    PDF = "pdf"


@dataclass(frozen=True)
class SourceDocument:
    id: str
    remote_ref: str  # gs://bucket/name or https URL
    declared_media_type: str
    size_bytes: int | None
    owner_id: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class ExtractionOutcome:
    text: str
    warnings: tuple[str, ...] = ()
    extraction_meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Transcript:
    id: str
    source_document_id: str
    content: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class IngestResult:
    transcript: Transcript
    warnings: tuple[str, ...]
    extraction_meta: dict[str, Any]
