"""Alembic environment configuration with async support.

This module configures Alembic for async migrations using asyncpg.
"""

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

# Alembic Config object
config = context.config

# Set up logging from alembic.ini when run from the CLI
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Raw SQL migrations; no autogenerate metadata
target_metadata = None


def get_database_url() -> str:
    """Get database URL from config or environment.

    Priority:
    1. sqlalchemy.url set on the Config (startup migrations)
    2. USERSERVICE_DATABASE_URL environment variable
    3. DATABASE_URL environment variable

    Automatically converts postgresql:// to postgresql+asyncpg:// for async support.
    """
    url = config.get_main_option("sqlalchemy.url", "")
    if not url:
        url = os.environ.get("USERSERVICE_DATABASE_URL", "")
    if not url:
        url = os.environ.get("DATABASE_URL", "")

    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            url = url.replace(prefix, "postgresql+asyncpg://", 1)
            break

    return url


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This generates SQL scripts without connecting to the database.
    """
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations with the given connection."""
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations in async mode using asyncpg."""
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = get_database_url()

    connectable = async_engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
