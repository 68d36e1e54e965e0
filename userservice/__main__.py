"""Process entrypoint.

Startup order: configuration, telemetry, database pool and migrations,
application, HTTP server. Telemetry is shut down on every exit path once it
has been initialized.

Usage:
    DATABASE_URL=postgresql://... python -m userservice
"""

import asyncio
import sys

import uvicorn
from pydantic import ValidationError

from userservice.api.app import create_app
from userservice.api.context import AppContext
from userservice.config import ConfigError, get_settings, require_database_url
from userservice.config.settings import Settings
from userservice.db.errors import StoreError
from userservice.db.migrate import run_migrations
from userservice.db.pool import PostgresPool
from userservice.observability.logging import get_logger
from userservice.observability.telemetry import (
    TelemetryError,
    TelemetryProviders,
    init_telemetry,
)
from userservice.users.store import UserStore
from userservice.users.stores.inmemory import InMemoryUserStore
from userservice.users.stores.postgres import PostgresUserStore

logger = get_logger(__name__)


async def open_store(settings: Settings) -> tuple[UserStore, PostgresPool | None]:
    """Connect the configured store and bring its schema up to date.

    Raises:
        ConfigError: If the postgres backend is selected without a database URL
        ConnectionError: If the pool cannot connect
        MigrationError: If migrations fail
    """
    if settings.storage.backend == "inmemory":
        logger.warning("inmemory_store_selected", msg="Users are not persisted")
        return InMemoryUserStore(), None

    database_url = require_database_url(settings)
    pg = settings.storage.postgres
    pool = PostgresPool(
        dsn=database_url,
        min_size=pg.min_pool_size,
        max_size=pg.max_pool_size,
        max_inactive_connection_lifetime=pg.max_inactive_connection_lifetime,
        command_timeout=pg.command_timeout,
        acquire_timeout=pg.pool_timeout,
    )
    try:
        await pool.connect()
        if pg.run_migrations:
            await run_migrations(database_url)
    except StoreError:
        await pool.close()
        raise

    logger.info("database_ready", migrations_applied=pg.run_migrations)
    return PostgresUserStore(pool), pool


async def serve(settings: Settings, telemetry: TelemetryProviders) -> None:
    """Open the store, build the app and serve until a termination signal."""
    store, pool = await open_store(settings)

    context = AppContext(settings=settings, store=store, telemetry=telemetry, pool=pool)
    app = create_app(context)

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
        access_log=False,
        timeout_graceful_shutdown=settings.api.graceful_shutdown_timeout,
    )
    server = uvicorn.Server(config)

    logger.info("server_listening", host=settings.api.host, port=settings.api.port)
    await server.serve()
    logger.info("server_stopped")


def main() -> None:
    """Run the service; exit with status 1 on startup failure."""
    try:
        settings = get_settings()
        if settings.storage.backend == "postgres":
            require_database_url(settings)
    except (ConfigError, ValidationError) as e:
        logger.critical("configuration_error", error=str(e))
        sys.exit(1)

    try:
        telemetry = init_telemetry(settings)
    except TelemetryError as e:
        logger.critical("telemetry_init_failed", error=str(e))
        sys.exit(1)

    exit_code = 0
    try:
        asyncio.run(serve(settings, telemetry))
    except StoreError as e:
        logger.critical("startup_failed", error=str(e), error_type=type(e).__name__)
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("shutdown_signal_received")
    finally:
        telemetry.shutdown()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
