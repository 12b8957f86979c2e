"""Abstract storage contract for the authentication service.

The contract is a fixed set of authentication-domain operations. It is
generic over the identifier type so backends may use integer or UUID keys.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Optional

from authvault.domain import (
    Credentials,
    IdT,
    Strategy,
    User,
    UserInfo,
    UserProvider,
    UserTokenPair,
    ensure_tz_aware,
    utc_now,
)

Clock = Callable[[], datetime]


class AuthStorage(ABC, Generic[IdT]):
    """
    Abstract storage for users, credentials, provider links and tokens.

    Invariants every implementation upholds:
    - A user's email is unique.
    - At most one valid token exists per user: issuing a token revokes all
      earlier tokens of that user before the new one is inserted.
    - Token validity is evaluated at read time with ``clock``.
    - A user and its initial provider link are created together or not
      at all.

    Lookups return ``None`` when nothing matches. Statement failures raise
    ``EngineError``.

    Example implementation:
        class MyStorage(AuthStorage[int]):
            async def get_user_by_id(self, user_id: int) -> User[int] | None:
                ...
    """

    def __init__(self, token_lifetime: int, clock: Optional[Clock] = None):
        """Initialize the storage.

        Parameters
        ----------
        token_lifetime
            Seconds a newly issued token remains valid
        clock
            Callable returning the current aware UTC datetime. Stamps
            token creation and evaluates token validity.
        """
        if token_lifetime <= 0:
            raise ValueError("token_lifetime must be a positive number of seconds")
        self.token_lifetime = token_lifetime
        self._clock: Clock = clock or utc_now

    def now(self) -> datetime:
        """Current time from the clock, normalized to UTC."""
        return ensure_tz_aware(self._clock()).astimezone(timezone.utc)

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish the connection to the backing store.

        Idempotent: a no-op when already connected.

        Raises
        ------
        StorageConnectionError
            If the backing store is unreachable
        """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Ensure all relations exist. Idempotent and never drops data.

        Raises
        ------
        SchemaError
            If the schema cannot be created
        """

    @abstractmethod
    async def validate(self) -> None:
        """
        Check that every relation is queryable (health check).

        Raises
        ------
        SchemaError
            Naming the first relation that cannot be queried
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the connection. ``connect`` may be called again later."""

    @abstractmethod
    async def create_user(
        self,
        user_info: UserInfo,
        provider: Strategy,
        provider_data: Any,
    ) -> User[IdT]:
        """
        Create a user together with its first provider link.

        Parameters
        ----------
        user_info
            Caller-supplied user fields
        provider
            Provider the user signed up with
        provider_data
            Provider payload; serialized and stored uninterpreted

        Returns
        -------
        The created user, re-read from storage

        Raises
        ------
        EmailAlreadyExistsError
            If a user with the same email exists
        EngineError
            If either insert fails; no user row remains afterwards
        """

    @abstractmethod
    async def create_credentials(
        self,
        user_id: IdT,
        email: str,
        password_hash: str,
        salt: str,
        strategy: Strategy,
    ) -> Credentials[IdT]:
        """
        Store credentials for a user.

        Raises
        ------
        DuplicateCredentialsError
            If credentials for ``(email, strategy)`` already exist
        """

    @abstractmethod
    async def create_token(
        self,
        user_id: IdT,
        token: str,
        strategy: Strategy,
    ) -> UserTokenPair[IdT]:
        """
        Issue a token for a user.

        Revokes every earlier token of the user first, then inserts the new
        one with ``lifetime = token_lifetime``. This order must not be
        reversed.

        Returns
        -------
        The newly inserted token row
        """

    @abstractmethod
    async def get_credentials(
        self,
        email: str,
        strategy: Strategy,
    ) -> Optional[Credentials[IdT]]:
        """Find credentials by email and strategy."""

    @abstractmethod
    async def get_user_token_pair(self, token: str) -> Optional[UserTokenPair[IdT]]:
        """Find a token, returning it only if it is currently valid."""

    @abstractmethod
    async def get_user_by_id(self, user_id: IdT) -> Optional[User[IdT]]:
        """Find a user by ID."""

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User[IdT]]:
        """Find a user by email address."""

    @abstractmethod
    async def update_user_providers(
        self,
        user_id: IdT,
        provider: Strategy,
        provider_data: Any,
    ) -> UserProvider[IdT]:
        """
        Link another provider to a user.

        Always appends a new link; existing links are left untouched.

        Returns
        -------
        The inserted link, re-read from storage
        """

    @abstractmethod
    async def revoke_token(self, token: str) -> None:
        """
        Revoke every row carrying ``token``.

        Succeeds silently when no row matches; revoking twice is harmless.
        """
