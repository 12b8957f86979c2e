"""authvault - Pluggable persistence for an authentication service.

This package stores user identities, per-strategy credential hashes,
provider links and session tokens. It handles:
- The storage contract every backend implements (generic over id type)
- A SQLAlchemy backend for SQLite and PostgreSQL
- An in-memory backend
- Token issuance with at most one valid token per user

Architecture:
    authvault/
    ├── domain/             # Entities, strategies, time helpers
    ├── storage/            # Abstract storage contract
    ├── persistence/        # Implementations by technology
    │   ├── sqlalchemy/     # SQLAlchemy implementation
    │   └── memory/         # In-process implementation
    ├── cli.py              # Database bootstrap commands
    └── exceptions.py       # Storage exceptions

Usage:
    from authvault import Strategy, UserInfo
    from authvault.persistence.factory import create_storage

    storage = create_storage()
    await storage.connect()
    await storage.initialize()
"""

from authvault.domain import (
    Credentials,
    Strategy,
    User,
    UserInfo,
    UserProvider,
    UserTokenPair,
)
from authvault.exceptions import (
    DuplicateCredentialsError,
    EmailAlreadyExistsError,
    EngineError,
    SchemaError,
    StorageConnectionError,
    StorageError,
)
from authvault.storage import AuthStorage

__all__ = [
    # Storage contract
    "AuthStorage",
    # Entities
    "Credentials",
    "Strategy",
    "User",
    "UserInfo",
    "UserProvider",
    "UserTokenPair",
    # Exceptions
    "DuplicateCredentialsError",
    "EmailAlreadyExistsError",
    "EngineError",
    "SchemaError",
    "StorageConnectionError",
    "StorageError",
]
