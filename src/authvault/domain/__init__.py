"""Authentication domain entities.

This package holds:
- Strategy: supported authentication strategies
- User, Credentials, UserProvider, UserTokenPair: persisted entities
- UserInfo: the caller-supplied part of a user
"""

from authvault.domain.entities import (
    Credentials,
    IdT,
    User,
    UserInfo,
    UserProvider,
    UserTokenPair,
)
from authvault.domain.strategy import Strategy
from authvault.domain.time import ensure_tz_aware, utc_now

__all__ = [
    "Credentials",
    "IdT",
    "Strategy",
    "User",
    "UserInfo",
    "UserProvider",
    "UserTokenPair",
    "ensure_tz_aware",
    "utc_now",
]
