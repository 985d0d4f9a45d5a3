"""Alembic environment for the EduFlow content service.

Migrations run synchronously through psycopg2. The connection string comes
from eduflow_service.db.DatabaseConfig (the same DATABASE_URL / AlloyDB /
local DB_* resolution the service uses) with the driver prefix swapped.
"""

from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context
from eduflow_service.db import DatabaseConfig

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Raw SQL migrations, no ORM metadata
target_metadata = None


def _sync_url() -> str:
    url = config.get_main_option("sqlalchemy.url") or DatabaseConfig.get_connection_string()
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+psycopg2://" + url[len(prefix) :]
    return url


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    context.configure(
        url=_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_sync_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
