from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ArtifactKind(str, Enum):
    NOTES = "notes"
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"
    SLIDES = "slides"


class ExportFormat(str, Enum):
    CSV = "csv"
    ANKI = "anki"
    ANKI_ENHANCED = "anki-enhanced"
    ANSWER_KEY = "answer-key"
    DOCX = "docx"
    PDF = "pdf"
    PPTX = "pptx"
    MD = "md"


@dataclass(frozen=True)
class GeneratedArtifact:
    id: str
    kind: str
    content: Any  # shape depends on kind, validated before export
    title: str | None
    owner_id: str


@dataclass(frozen=True)
class SerializedFile:
    buffer: bytes
    mime_type: str
    file_name: str
