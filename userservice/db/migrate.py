"""Apply Alembic migrations at startup."""

import asyncio
from pathlib import Path

from alembic import command
from alembic.config import Config

from userservice.db.errors import MigrationError
from userservice.observability.logging import get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def build_alembic_config(database_url: str) -> Config:
    """Build an Alembic config pointing at the packaged migration scripts."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation treats % specially (url-encoded passwords)
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def upgrade_to_head(database_url: str) -> None:
    """Apply every pending revision up to head (blocking)."""
    command.upgrade(build_alembic_config(database_url), "head")


async def run_migrations(database_url: str) -> None:
    """Apply pending migrations before the service accepts traffic.

    The Alembic environment drives its own event loop, so the upgrade runs
    in a worker thread.

    Raises:
        MigrationError: If any revision fails to apply
    """
    logger.info("migrations_started")
    try:
        await asyncio.to_thread(upgrade_to_head, database_url)
    except Exception as e:
        logger.error("migrations_failed", error=str(e), error_type=type(e).__name__)
        raise MigrationError(f"Failed to apply migrations: {e}", cause=e) from e
    logger.info("migrations_applied")
