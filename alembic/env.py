"""
Alembic environment for the Supabase project's Postgres.

The client itself never connects here: it only talks to the REST, auth and
storage endpoints. Migrations run with the project's direct connection
string and only manage objects in the public schema; auth and storage
belong to Supabase.
"""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Version table lives next to our tables, never in auth or storage
VERSION_SCHEMA = "public"


def database_url() -> str:
    """Direct connection string, from DATABASE_URL or the Supabase CLI's SUPABASE_DB_URL."""
    url = os.environ.get("DATABASE_URL") or os.environ.get("SUPABASE_DB_URL", "")
    if not url:
        raise RuntimeError("DATABASE_URL (or SUPABASE_DB_URL) is required to run migrations")
    # Supabase hands out postgres:// URLs; SQLAlchemy wants postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def run_migrations_offline() -> None:
    context.configure(
        url=database_url(),
        target_metadata=None,
        literal_binds=True,
        version_table_schema=VERSION_SCHEMA,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # One-shot run; the project's pooler already multiplexes connections
    connectable = create_engine(database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=None,
            version_table_schema=VERSION_SCHEMA,
            transaction_per_migration=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
