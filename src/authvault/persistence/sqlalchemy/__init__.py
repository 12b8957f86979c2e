"""SQLAlchemy implementation for authvault persistence.

Provides:
- AuthBase: Declarative base for authvault models
- UserModel, CredentialsModel, UserProviderModel, UserTokenPairModel
- SQLAlchemyStorage: AuthStorage implementation with integer ids
- create_schema / verify_schema / drop_schema: schema management

Examples
--------
# In your Alembic env.py:
from authvault.persistence.sqlalchemy import AuthBase
target_metadata = AuthBase.metadata
"""

from authvault.persistence.sqlalchemy.base import AuthBase
from authvault.persistence.sqlalchemy.models import (
    CredentialsModel,
    UserModel,
    UserProviderModel,
    UserTokenPairModel,
)
from authvault.persistence.sqlalchemy.schema import (
    create_schema,
    drop_schema,
    verify_schema,
)
from authvault.persistence.sqlalchemy.storage import SQLAlchemyStorage

__all__ = [
    "AuthBase",
    "CredentialsModel",
    "SQLAlchemyStorage",
    "UserModel",
    "UserProviderModel",
    "UserTokenPairModel",
    "create_schema",
    "drop_schema",
    "verify_schema",
]
