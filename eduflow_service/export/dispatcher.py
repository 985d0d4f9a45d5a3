"""(artifact kind, target format) dispatch for serialization.

The table is closed. A pair that is not listed is rejected before content
is validated or any serializer runs.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from eduflow_service.config import EDUFLOW_EXPORT_DEFAULT_TITLE
from eduflow_service.errors import UnsupportedCombinationError
from eduflow_service.export.content import parse_artifact_content
from eduflow_service.export.serializers import anki, document, pdf, presentation, tabular
from eduflow_service.export.types import ArtifactKind, ExportFormat, SerializedFile

logger = logging.getLogger(__name__)

CSV_MIME = "text/csv"
TEXT_MIME = "text/plain"
PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
MD_MIME = "text/markdown"


@dataclass(frozen=True)
class Serializer:
    render: Callable[[Any, str], bytes]  # (validated content, title) -> bytes
    mime_type: str
    extension: str
    suffix: str


_SERIALIZERS: dict[tuple[ArtifactKind, ExportFormat], Serializer] = {
    (ArtifactKind.NOTES, ExportFormat.DOCX): Serializer(
        lambda c, t: document.notes_to_docx(c, title=t), DOCX_MIME, "docx", "notes"
    ),
    (ArtifactKind.NOTES, ExportFormat.PDF): Serializer(
        lambda c, t: pdf.notes_to_pdf(c, title=t), PDF_MIME, "pdf", "notes"
    ),
    (ArtifactKind.NOTES, ExportFormat.MD): Serializer(
        lambda c, t: document.notes_to_markdown(c), MD_MIME, "md", "notes"
    ),
    (ArtifactKind.FLASHCARDS, ExportFormat.CSV): Serializer(
        lambda c, t: tabular.flashcards_to_csv(c), CSV_MIME, "csv", "flashcards"
    ),
    (ArtifactKind.FLASHCARDS, ExportFormat.ANKI): Serializer(
        lambda c, t: anki.flashcards_to_anki(c), TEXT_MIME, "txt", "anki"
    ),
    (ArtifactKind.FLASHCARDS, ExportFormat.ANKI_ENHANCED): Serializer(
        lambda c, t: anki.flashcards_to_anki_enhanced(c, deck=t), TEXT_MIME, "txt", "anki-enhanced"
    ),
    (ArtifactKind.FLASHCARDS, ExportFormat.PDF): Serializer(
        lambda c, t: pdf.flashcards_to_pdf(c, title=t), PDF_MIME, "pdf", "flashcards"
    ),
    (ArtifactKind.QUIZ, ExportFormat.CSV): Serializer(
        lambda c, t: tabular.quiz_to_csv(c), CSV_MIME, "csv", "quiz"
    ),
    (ArtifactKind.QUIZ, ExportFormat.ANSWER_KEY): Serializer(
        lambda c, t: tabular.quiz_answer_key_csv(c), CSV_MIME, "csv", "answer-key"
    ),
    (ArtifactKind.QUIZ, ExportFormat.PDF): Serializer(
        lambda c, t: pdf.quiz_to_pdf(c, title=t), PDF_MIME, "pdf", "quiz"
    ),
    (ArtifactKind.SLIDES, ExportFormat.PPTX): Serializer(
        lambda c, t: presentation.slides_to_pptx(c, title=t), PPTX_MIME, "pptx", "slides"
    ),
    (ArtifactKind.SLIDES, ExportFormat.PDF): Serializer(
        lambda c, t: pdf.slides_to_pdf(c, title=t), PDF_MIME, "pdf", "slides"
    ),
}

_UNSAFE_FILENAME = re.compile(r"[^a-z0-9_-]+")


def sanitize_filename(name: str) -> str:
    """Lower-case and replace runs outside ``[a-z0-9_-]`` with ``_``."""
    slug = _UNSAFE_FILENAME.sub("_", (name or "").lower()).strip("_")
    return slug or "export"


def _resolve(kind: str | ArtifactKind, target_format: str | ExportFormat) -> tuple[ArtifactKind, Serializer]:
    try:
        k = ArtifactKind(kind)
        f = ExportFormat(target_format)
    except ValueError as e:
        raise UnsupportedCombinationError(str(kind), str(target_format)) from e
    serializer = _SERIALIZERS.get((k, f))
    if serializer is None:
        raise UnsupportedCombinationError(k.value, f.value)
    return k, serializer


def available_formats(kind: str | ArtifactKind) -> list[str]:
    """Formats the given artifact kind can be exported to, in table order."""
    try:
        k = ArtifactKind(kind)
    except ValueError:
        return []
    return [f.value for (ak, f) in _SERIALIZERS if ak is k]


def is_supported_combination(kind: str, target_format: str) -> bool:
    try:
        _resolve(kind, target_format)
    except UnsupportedCombinationError:
        return False
    return True


def serialize(
    kind: str | ArtifactKind,
    target_format: str | ExportFormat,
    content: Any,
    *,
    title: str | None = None,
) -> SerializedFile:
    """Validate ``content`` for ``kind`` and render it as ``target_format``."""
    k, serializer = _resolve(kind, target_format)
    typed = parse_artifact_content(k, content)
    doc_title = (title or "").strip() or EDUFLOW_EXPORT_DEFAULT_TITLE

    buffer = serializer.render(typed, doc_title)
    file_name = f"{sanitize_filename(doc_title)}-{serializer.suffix}.{serializer.extension}"
    logger.info(
        "Serialized %s as %s (%d bytes)", k.value, serializer.extension, len(buffer)
    )
    return SerializedFile(buffer=buffer, mime_type=serializer.mime_type, file_name=file_name)
