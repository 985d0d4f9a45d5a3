from __future__ import annotations

import asyncio
import logging

from eduflow_service.errors import ContentPipelineError, DocumentNotFoundError, MediaTypeConflictError
from eduflow_service.ingestion.dispatcher import extract, resolve_doc_type
from eduflow_service.ingestion.storage import ByteFetcher
from eduflow_service.ingestion.types import IngestResult
from eduflow_service.stores.transcript_store import TranscriptRepository

logger = logging.getLogger(__name__)


class IngestionRunner:
    """fetch -> dispatch -> extract -> normalize -> append a Transcript.

    Collaborators are passed in; the runner holds no connections of its own.
    Nothing is retried here.
    """

    def __init__(self, *, fetcher: ByteFetcher, repository: TranscriptRepository) -> None:
        self._fetcher = fetcher
        self._repo = repository

    async def ingest(
        self,
        *,
        remote_ref: str,
        declared_media_type: str,
        owner_id: str,
        size_bytes: int | None = None,
    ) -> IngestResult:
        # Reject before any fetch or write
        doc_type = resolve_doc_type(declared_media_type)

        logger.info("Ingest start type=%s ref=%s", doc_type.value, remote_ref)
        data = await self._fetcher.fetch_bytes(remote_ref)

        doc = await self._repo.ensure_source_document(
            owner_id=owner_id,
            remote_ref=remote_ref,
            declared_media_type=declared_media_type,
            size_bytes=size_bytes if size_bytes is not None else len(data),
        )
        # Source documents are immutable: a ref keeps the type it was first accepted as
        if resolve_doc_type(doc.declared_media_type) is not doc_type:
            raise MediaTypeConflictError(remote_ref, doc.declared_media_type, declared_media_type)

        try:
            # CPU-bound parsing, keep it off the event loop
            outcome = await asyncio.to_thread(extract, declared_media_type, data)
        except ContentPipelineError as e:
            logger.warning(
                "Extraction failed for document %s (kept without new transcript): %s",
                doc.id,
                e.message,
            )
            raise

        for w in outcome.warnings:
            logger.warning("Document %s: %s", doc.id, w)

        transcript = await self._repo.insert_transcript(
            owner_id=owner_id,
            source_document_id=doc.id,
            text=outcome.text,
        )
        logger.info(
            "Ingest done document=%s transcript=%s chars=%d warnings=%d",
            doc.id,
            transcript.id,
            len(outcome.text),
            len(outcome.warnings),
        )
        return IngestResult(
            transcript=transcript,
            warnings=outcome.warnings,
            extraction_meta=outcome.extraction_meta,
        )

    async def reingest(self, *, source_document_id: str, owner_id: str) -> IngestResult:
        """Extract an existing document again, appending a new transcript version."""
        doc = await self._repo.get_source_document(
            owner_id=owner_id, source_document_id=source_document_id
        )
        if doc is None:
            raise DocumentNotFoundError(f"Document not found: {source_document_id}")
        return await self.ingest(
            remote_ref=doc.remote_ref,
            declared_media_type=doc.declared_media_type,
            owner_id=owner_id,
            size_bytes=doc.size_bytes,
        )
