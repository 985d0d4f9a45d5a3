"""Media-type dispatch for text extraction.

The set of accepted media types is closed: anything not listed in
``SUPPORTED_MEDIA_TYPES`` is rejected before an extractor is built.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from eduflow_service.errors import UnsupportedFormatError
from eduflow_service.ingestion.extractors.base import Extractor, normalize_text
from eduflow_service.ingestion.extractors.docx import DocxExtractor
from eduflow_service.ingestion.extractors.pdf import PdfExtractor
from eduflow_service.ingestion.extractors.pptx import PptxExtractor
from eduflow_service.ingestion.types import DocType, ExtractionOutcome

logger = logging.getLogger(__name__)

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MEDIA_TYPE = "application/pdf"

SUPPORTED_MEDIA_TYPES: dict[str, DocType] = {
    PPTX_MEDIA_TYPE: DocType.PPTX,
    DOCX_MEDIA_TYPE: DocType.DOCX,
    PDF_MEDIA_TYPE: DocType.PDF,
}

_EXTRACTORS: dict[DocType, Callable[[], Extractor]] = {
    DocType.PPTX: PptxExtractor,
    DocType.DOCX: DocxExtractor,
    DocType.PDF: PdfExtractor,
}

# Handled by the transcription service, never by text extraction
_TRANSCRIBED_PREFIXES = ("audio/", "video/")


def _base_media_type(media_type: str) -> str:
    return (media_type or "").split(";", 1)[0].strip().lower()


def resolve_doc_type(media_type: str) -> DocType:
    base = _base_media_type(media_type)
    doc_type = SUPPORTED_MEDIA_TYPES.get(base)
    if doc_type is not None:
        return doc_type
    if base.startswith(_TRANSCRIBED_PREFIXES):
        raise UnsupportedFormatError(
            media_type, f"Media type {media_type!r} requires transcription, not text extraction"
        )
    raise UnsupportedFormatError(media_type)


def is_supported(media_type: str) -> bool:
    return _base_media_type(media_type) in SUPPORTED_MEDIA_TYPES


def extract(media_type: str, data: bytes) -> ExtractionOutcome:
    """Run the extractor registered for ``media_type`` and normalize its text."""
    doc_type = resolve_doc_type(media_type)
    extractor = _EXTRACTORS[doc_type]()
    outcome = extractor.extract(data=data)
    text = normalize_text(outcome.text)
    if outcome.warnings:
        logger.debug("Extraction of %s produced %d warnings", doc_type.value, len(outcome.warnings))
    return ExtractionOutcome(
        text=text,
        warnings=outcome.warnings,
        extraction_meta={**outcome.extraction_meta, "doc_type": doc_type.value, "chars": len(text)},
    )
