"""Create source_documents, transcripts and generated_artifacts with RLS.

Revision ID: 001
Create Date: 2026-10-19

Every row is owned by one user. RLS policies compare the owner against the
transaction-local `app.user_id` setting; transcripts inherit visibility
from their source document.
"""

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- Extensions -----------------------------------------------------------
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    # -- source_documents -----------------------------------------------------
    op.execute(
        """
        CREATE TABLE source_documents (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            owner_id TEXT NOT NULL,
            remote_ref TEXT NOT NULL,
            declared_media_type TEXT NOT NULL,
            size_bytes BIGINT CHECK (size_bytes IS NULL OR size_bytes >= 0),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),

            UNIQUE (owner_id, remote_ref)
        )
    """
    )

    # -- transcripts ----------------------------------------------------------
    # created_at uses clock_timestamp() so versions written in one transaction
    # still differ; seq breaks any remaining tie by insertion order.
    op.execute(
        """
        CREATE TABLE transcripts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            source_document_id UUID NOT NULL
                REFERENCES source_documents(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            seq BIGINT GENERATED ALWAYS AS IDENTITY,
            created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """
    )
    op.execute(
        """
        CREATE INDEX ix_transcripts_document_latest
        ON transcripts (source_document_id, created_at DESC, seq DESC)
    """
    )

    # -- generated_artifacts --------------------------------------------------
    op.execute(
        """
        CREATE TABLE generated_artifacts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            owner_id TEXT NOT NULL,
            transcript_id UUID REFERENCES transcripts(id) ON DELETE SET NULL,
            kind TEXT NOT NULL
                CHECK (kind IN ('notes', 'flashcards', 'quiz', 'slides')),
            title TEXT,
            content JSONB NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """
    )

    # -- RLS: owner-scoped tables ---------------------------------------------
    for table in ("source_documents", "generated_artifacts"):
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")
        op.execute(
            f"""
            CREATE POLICY {table}_owner ON {table}
            FOR ALL
            USING (owner_id = current_setting('app.user_id', true))
            WITH CHECK (owner_id = current_setting('app.user_id', true))
        """
        )

    # -- RLS: transcripts follow their document -------------------------------
    op.execute("ALTER TABLE transcripts ENABLE ROW LEVEL SECURITY")
    op.execute("ALTER TABLE transcripts FORCE ROW LEVEL SECURITY")
    op.execute(
        """
        CREATE POLICY transcripts_owner ON transcripts
        FOR ALL
        USING (
            EXISTS (
                SELECT 1
                FROM source_documents d
                WHERE d.id = transcripts.source_document_id
                  AND d.owner_id = current_setting('app.user_id', true)
            )
        )
        WITH CHECK (
            EXISTS (
                SELECT 1
                FROM source_documents d
                WHERE d.id = transcripts.source_document_id
                  AND d.owner_id = current_setting('app.user_id', true)
            )
        )
    """
    )


def downgrade() -> None:
    op.execute("DROP POLICY IF EXISTS transcripts_owner ON transcripts")
    op.execute("ALTER TABLE transcripts DISABLE ROW LEVEL SECURITY")
    for table in ("generated_artifacts", "source_documents"):
        op.execute(f"DROP POLICY IF EXISTS {table}_owner ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    # -- Drop tables (reverse FK order) ---------------------------------------
    op.execute("DROP TABLE IF EXISTS generated_artifacts CASCADE")
    op.execute("DROP TABLE IF EXISTS transcripts CASCADE")
    op.execute("DROP TABLE IF EXISTS source_documents CASCADE")
