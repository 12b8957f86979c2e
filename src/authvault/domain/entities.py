"""Entities returned by storage backends.

All entities are immutable snapshots of persisted rows. They are generic
over the identifier type so integer-keyed and UUID-keyed backends share
the same shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Generic, Optional, TypeVar

from authvault.domain.strategy import Strategy
from authvault.domain.time import ensure_tz_aware

IdT = TypeVar("IdT")


@dataclass(frozen=True)
class UserInfo:
    """User fields supplied by the caller when creating a user."""

    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    picture: Optional[str] = None


@dataclass(frozen=True)
class User(Generic[IdT]):
    id: IdT
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    picture: Optional[str] = None

    def info(self) -> UserInfo:
        """Return the caller-supplied fields of this user."""
        return UserInfo(
            email=self.email,
            username=self.username,
            first_name=self.first_name,
            last_name=self.last_name,
            date_of_birth=self.date_of_birth,
            gender=self.gender,
            picture=self.picture,
        )


@dataclass(frozen=True)
class Credentials(Generic[IdT]):
    id: IdT
    user_id: IdT
    email: str
    password_hash: str
    salt: str
    strategy: Strategy


@dataclass(frozen=True)
class UserProvider(Generic[IdT]):
    """A provider linked to a user.

    ``data`` is the serialized payload exactly as stored; its schema
    belongs to the caller.
    """

    id: IdT
    user_id: IdT
    provider: Strategy
    data: str


@dataclass(frozen=True)
class UserTokenPair(Generic[IdT]):
    """A session token issued to a user.

    A token is valid while it is not revoked and no more than ``lifetime``
    seconds have passed since ``created``. Validity depends on the moment
    of evaluation and is never stored.
    """

    id: IdT
    user_id: IdT
    token: str
    lifetime: int
    strategy: Strategy
    created: datetime
    revoked: bool = False

    @property
    def expires_at(self) -> datetime:
        return ensure_tz_aware(self.created) + timedelta(seconds=self.lifetime)

    def is_valid(self, now: datetime) -> bool:
        if self.revoked:
            return False
        age = (ensure_tz_aware(now) - ensure_tz_aware(self.created)).total_seconds()
        return age <= self.lifetime
