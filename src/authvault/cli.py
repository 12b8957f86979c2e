"""Database bootstrap commands.

Installed as console scripts:
    authvault-db-init     Create missing tables (idempotent)
    authvault-db-check    Verify every relation is queryable
    authvault-db-reset    Drop and recreate all tables (asks first)
"""

import asyncio
import logging
import sys

from authvault.exceptions import StorageError
from authvault.logging_config import configure_logging
from authvault.persistence.factory import create_storage
from authvault.persistence.sqlalchemy import (
    SQLAlchemyStorage,
    create_schema,
    drop_schema,
)
from authvault_config import get_settings

logger = logging.getLogger(__name__)


async def _init_database() -> None:
    storage = create_storage()
    await storage.connect()
    try:
        await storage.initialize()
        await storage.validate()
    finally:
        await storage.close()
    logger.info("Database initialized successfully!")


async def _check_database() -> None:
    storage = create_storage()
    await storage.connect()
    try:
        await storage.validate()
    finally:
        await storage.close()
    logger.info("All relations are present and queryable")


async def _reset_database(storage: SQLAlchemyStorage) -> None:
    await storage.connect()
    try:
        await drop_schema(storage.engine)
        await create_schema(storage.engine)
    finally:
        await storage.close()
    logger.info("Database recreated successfully!")


def _run(coro) -> None:
    configure_logging()
    try:
        asyncio.run(coro)
    except StorageError as e:
        logger.error("%s", e.message)
        sys.exit(1)


def db_init() -> None:
    """Initialize database (create tables)."""
    _run(_init_database())


def db_check() -> None:
    """Validate that all tables exist."""
    _run(_check_database())


def db_reset() -> None:
    """Drop and recreate all database tables."""
    force = "--force" in sys.argv or "-f" in sys.argv
    settings = get_settings()
    storage = create_storage(settings)
    if not isinstance(storage, SQLAlchemyStorage):
        print("Nothing to reset for in-memory storage.")
        return

    print(f"Database: {settings.database_display}")
    print()
    if not force:
        print("WARNING: This will DELETE ALL DATA in the database!")
        print()
        response = input("Type 'yes' to confirm: ")
        if response.lower() != "yes":
            print("Aborted.")
            sys.exit(1)
        print()

    _run(_reset_database(storage))
