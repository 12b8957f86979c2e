"""Schema management for the SQLAlchemy backend.

Creating tables is idempotent: ``create_all`` only adds missing tables
and never modifies or deletes existing tables or their data.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from authvault.exceptions import SchemaError
from authvault.persistence.sqlalchemy.base import AuthBase

# Importing the models registers them with AuthBase.metadata
from authvault.persistence.sqlalchemy.models import (
    CredentialsModel,
    UserModel,
    UserProviderModel,
    UserTokenPairModel,
)

logger = logging.getLogger(__name__)

RELATIONS = (UserModel, UserTokenPairModel, CredentialsModel, UserProviderModel)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all authvault tables that do not exist yet."""
    logger.info("Ensuring authvault tables exist...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(AuthBase.metadata.create_all)
    except SQLAlchemyError as e:
        raise SchemaError("Failed to create schema") from e
    logger.info("Schema is up to date (missing tables created if needed)")


async def verify_schema(engine: AsyncEngine) -> None:
    """Query every relation once, failing on the first unusable one."""
    try:
        async with engine.connect() as conn:
            for model in RELATIONS:
                try:
                    await conn.execute(select(model.id).limit(1))
                except SQLAlchemyError as e:
                    raise SchemaError(
                        "Relation is not queryable",
                        relation=model.__tablename__,
                    ) from e
    except SQLAlchemyError as e:
        raise SchemaError("Cannot connect to verify schema") from e
    logger.debug("All %d relations are queryable", len(RELATIONS))


async def drop_schema(engine: AsyncEngine) -> None:
    """Drop all authvault tables (USE WITH CAUTION!)."""
    logger.warning("Dropping all authvault tables...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(AuthBase.metadata.drop_all)
    except SQLAlchemyError as e:
        raise SchemaError("Failed to drop schema") from e
