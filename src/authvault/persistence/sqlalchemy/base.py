"""SQLAlchemy declarative base for authvault models.

Applications sharing a database with other models can include
AuthBase.metadata in their migration configuration.
"""

from sqlalchemy.orm import DeclarativeBase


class AuthBase(DeclarativeBase):
    """Declarative base for authvault models."""
