"""Storage backend selection from settings."""

import logging
from typing import Any, Optional

from authvault.persistence.memory import InMemoryStorage
from authvault.persistence.sqlalchemy import SQLAlchemyStorage
from authvault.storage import AuthStorage, Clock
from authvault_config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_storage(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> AuthStorage[Any]:
    """Build the storage backend configured by ``settings``.

    The returned storage is not connected yet; call ``connect()`` and
    ``initialize()`` before use.
    """
    settings = settings or get_settings()

    if settings.is_memory:
        logger.info("Using in-memory storage")
        return InMemoryStorage(settings.token_lifetime, clock=clock)

    logger.info("Using SQL storage at %s", settings.database_display)
    return SQLAlchemyStorage(
        settings.token_lifetime,
        settings.database_url,
        echo=settings.database_echo,
        clock=clock,
    )
