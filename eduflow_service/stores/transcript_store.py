"""Persistence for source_documents, transcripts and generated_artifacts.

All ``TranscriptStore`` methods expect a connection with the RLS owner
variable already set (via db.owner_connection). Owner isolation is enforced
by PostgreSQL RLS policies, not by WHERE clauses in application SQL.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Protocol

import asyncpg

from eduflow_service.db import owner_connection
from eduflow_service.export.types import GeneratedArtifact
from eduflow_service.ingestion.types import SourceDocument, Transcript

logger = logging.getLogger(__name__)

_DOC_COLUMNS = "id, owner_id, remote_ref, declared_media_type, size_bytes, created_at"
_TRANSCRIPT_COLUMNS = "id, source_document_id, content, created_at"


def _to_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _document(row: asyncpg.Record) -> SourceDocument:
    return SourceDocument(
        id=str(row["id"]),
        remote_ref=row["remote_ref"],
        declared_media_type=row["declared_media_type"],
        size_bytes=row["size_bytes"],
        owner_id=row["owner_id"],
        created_at=row["created_at"],
    )


def _transcript(row: asyncpg.Record) -> Transcript:
    return Transcript(
        id=str(row["id"]),
        source_document_id=str(row["source_document_id"]),
        content=row["content"],
        created_at=row["created_at"],
    )


def _artifact(row: asyncpg.Record) -> GeneratedArtifact:
    content: Any = row["content"]
    if isinstance(content, str):
        content = json.loads(content)
    return GeneratedArtifact(
        id=str(row["id"]),
        kind=row["kind"],
        content=content,
        title=row["title"],
        owner_id=row["owner_id"],
    )


class TranscriptStore:
    """Stateless data-access object for source documents and their transcripts."""

    async def get_or_create_source_document(
        self,
        conn: asyncpg.Connection,
        *,
        owner_id: str,
        remote_ref: str,
        declared_media_type: str,
        size_bytes: int | None,
    ) -> SourceDocument:
        """Return the owner's document for ``remote_ref``, inserting it once.

        Existing rows are never updated.
        """
        row = await conn.fetchrow(
            f"""
            INSERT INTO source_documents
                (id, owner_id, remote_ref, declared_media_type, size_bytes)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (owner_id, remote_ref) DO NOTHING
            RETURNING {_DOC_COLUMNS}
            """,
            uuid.uuid4(),
            owner_id,
            remote_ref,
            declared_media_type,
            size_bytes,
        )
        if row is None:
            row = await conn.fetchrow(
                f"SELECT {_DOC_COLUMNS} FROM source_documents WHERE owner_id = $1 AND remote_ref = $2",
                owner_id,
                remote_ref,
            )
        return _document(row)  # type: ignore[arg-type]

    async def get_source_document(
        self,
        conn: asyncpg.Connection,
        doc_id: str,
    ) -> SourceDocument | None:
        key = _to_uuid(doc_id)
        if key is None:
            return None
        row = await conn.fetchrow(f"SELECT {_DOC_COLUMNS} FROM source_documents WHERE id = $1", key)
        return _document(row) if row else None

    async def list_source_documents(
        self,
        conn: asyncpg.Connection,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[SourceDocument], int]:
        """List the caller's documents, newest first. Returns (documents, total)."""
        total = await conn.fetchval("SELECT COUNT(*) FROM source_documents")
        rows = await conn.fetch(
            f"""
            SELECT {_DOC_COLUMNS}
            FROM source_documents
            ORDER BY created_at DESC, id
            LIMIT $1 OFFSET $2
            """,
            limit,
            offset,
        )
        return [_document(r) for r in rows], total or 0

    async def delete_source_document(
        self,
        conn: asyncpg.Connection,
        doc_id: str,
    ) -> bool:
        """Hard-delete a document; its transcripts go with it (ON DELETE CASCADE)."""
        key = _to_uuid(doc_id)
        if key is None:
            return False
        tag = await conn.execute("DELETE FROM source_documents WHERE id = $1", key)
        return tag == "DELETE 1"

    async def insert_transcript(
        self,
        conn: asyncpg.Connection,
        *,
        source_document_id: str,
        content: str,
    ) -> Transcript:
        """Append a new transcript version. Single INSERT, never an overwrite."""
        row = await conn.fetchrow(
            f"""
            INSERT INTO transcripts (id, source_document_id, content)
            VALUES ($1, $2, $3)
            RETURNING {_TRANSCRIPT_COLUMNS}
            """,
            uuid.uuid4(),
            uuid.UUID(source_document_id),
            content,
        )
        return _transcript(row)  # type: ignore[arg-type]

    async def latest_transcript(
        self,
        conn: asyncpg.Connection,
        source_document_id: str,
    ) -> Transcript | None:
        key = _to_uuid(source_document_id)
        if key is None:
            return None
        row = await conn.fetchrow(
            f"""
            SELECT {_TRANSCRIPT_COLUMNS}
            FROM transcripts
            WHERE source_document_id = $1
            ORDER BY created_at DESC, seq DESC
            LIMIT 1
            """,
            key,
        )
        return _transcript(row) if row else None

    async def list_transcripts(
        self,
        conn: asyncpg.Connection,
        source_document_id: str,
    ) -> list[Transcript]:
        """All versions for a document, newest first."""
        key = _to_uuid(source_document_id)
        if key is None:
            return []
        rows = await conn.fetch(
            f"""
            SELECT {_TRANSCRIPT_COLUMNS}
            FROM transcripts
            WHERE source_document_id = $1
            ORDER BY created_at DESC, seq DESC
            """,
            key,
        )
        return [_transcript(r) for r in rows]

    async def get_artifact(
        self,
        conn: asyncpg.Connection,
        artifact_id: str,
    ) -> GeneratedArtifact | None:
        key = _to_uuid(artifact_id)
        if key is None:
            return None
        row = await conn.fetchrow(
            "SELECT id, owner_id, kind, title, content FROM generated_artifacts WHERE id = $1",
            key,
        )
        return _artifact(row) if row else None


class TranscriptRepository(Protocol):
    """What the ingestion runner needs from persistence."""

    async def ensure_source_document(
        self,
        *,
        owner_id: str,
        remote_ref: str,
        declared_media_type: str,
        size_bytes: int | None,
    ) -> SourceDocument: ...

    async def get_source_document(self, *, owner_id: str, source_document_id: str) -> SourceDocument | None: ...

    async def insert_transcript(self, *, owner_id: str, source_document_id: str, text: str) -> Transcript: ...

    async def latest_transcript(self, *, owner_id: str, source_document_id: str) -> Transcript | None: ...


class PgTranscriptRepository:
    """TranscriptRepository over an explicitly supplied asyncpg pool.

    Each call runs in its own owner-scoped transaction, so a document row
    survives even when the extraction that follows it fails.
    """

    def __init__(self, pool: asyncpg.Pool, store: TranscriptStore | None = None) -> None:
        self._pool = pool
        self._store = store or TranscriptStore()

    async def ensure_source_document(
        self,
        *,
        owner_id: str,
        remote_ref: str,
        declared_media_type: str,
        size_bytes: int | None,
    ) -> SourceDocument:
        async with owner_connection(self._pool, owner_id) as conn:
            return await self._store.get_or_create_source_document(
                conn,
                owner_id=owner_id,
                remote_ref=remote_ref,
                declared_media_type=declared_media_type,
                size_bytes=size_bytes,
            )

    async def get_source_document(self, *, owner_id: str, source_document_id: str) -> SourceDocument | None:
        async with owner_connection(self._pool, owner_id) as conn:
            return await self._store.get_source_document(conn, source_document_id)

    async def insert_transcript(self, *, owner_id: str, source_document_id: str, text: str) -> Transcript:
        async with owner_connection(self._pool, owner_id) as conn:
            return await self._store.insert_transcript(
                conn, source_document_id=source_document_id, content=text
            )

    async def latest_transcript(self, *, owner_id: str, source_document_id: str) -> Transcript | None:
        async with owner_connection(self._pool, owner_id) as conn:
            return await self._store.latest_transcript(conn, source_document_id)
