"""In-memory implementation of AuthStorage.

Keeps every relation in a dictionary keyed by UUID. Data lives as long as
the storage object. Constraint violations raise the same errors as the
SQL backend, so callers can run against either one.
"""

import logging
from dataclasses import replace
from typing import Any, Optional
from uuid import UUID, uuid4

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
)
from authvault.persistence._payload import serialize_provider_data
from authvault.storage import AuthStorage, Clock

logger = logging.getLogger(__name__)

USERS = "users"
CREDENTIALS = "credentials"
USER_PROVIDERS = "user_providers"
USER_TOKEN_PAIRS = "user_token_pairs"
RELATIONS = (USERS, USER_TOKEN_PAIRS, CREDENTIALS, USER_PROVIDERS)


class InMemoryStorage(AuthStorage[UUID]):
    """In-process AuthStorage with UUID identifiers."""

    def __init__(self, token_lifetime: int, clock: Optional[Clock] = None):
        super().__init__(token_lifetime, clock)
        self._connected = False
        self._tables: dict[str, dict[UUID, Any]] = {}

    async def connect(self) -> None:
        self._connected = True

    async def close(self) -> None:
        self._connected = False

    async def initialize(self) -> None:
        self._require_connection()
        for name in RELATIONS:
            self._tables.setdefault(name, {})

    async def validate(self) -> None:
        self._require_connection()
        for name in RELATIONS:
            if name not in self._tables:
                raise SchemaError("Relation is not queryable", relation=name)

    async def create_user(
        self,
        user_info: UserInfo,
        provider: Strategy,
        provider_data: Any,
    ) -> User[UUID]:
        provider = Strategy(provider)
        data = serialize_provider_data(provider_data)
        users = self._table(USERS)

        if any(user.email == user_info.email for user in users.values()):
            raise EmailAlreadyExistsError(user_info.email)

        user = User(id=uuid4(), **vars(user_info))
        users[user.id] = user

        try:
            await self._add_provider(user.id, provider, data)
        except Exception:
            logger.warning(
                "Linking provider %s failed; rolling back user %s",
                provider.value,
                user_info.email,
            )
            users.pop(user.id, None)
            raise

        logger.info("Created user %s (email: %s)", user.id, user.email)
        return users[user.id]

    async def create_credentials(
        self,
        user_id: UUID,
        email: str,
        password_hash: str,
        salt: str,
        strategy: Strategy,
    ) -> Credentials[UUID]:
        strategy = Strategy(strategy)
        self._require_user(user_id)
        credentials = self._table(CREDENTIALS)

        if await self.get_credentials(email, strategy) is not None:
            raise DuplicateCredentialsError(email, strategy.value)

        row = Credentials(
            id=uuid4(),
            user_id=user_id,
            email=email,
            password_hash=password_hash,
            salt=salt,
            strategy=strategy,
        )
        credentials[row.id] = row
        logger.info("Created %s credentials for user %s", strategy.value, user_id)
        return row

    async def create_token(
        self,
        user_id: UUID,
        token: str,
        strategy: Strategy,
    ) -> UserTokenPair[UUID]:
        strategy = Strategy(strategy)
        self._require_user(user_id)
        pairs = self._table(USER_TOKEN_PAIRS)

        # Revoke before insert: never two valid tokens for one user
        for pair_id, pair in list(pairs.items()):
            if pair.user_id == user_id:
                pairs[pair_id] = replace(pair, revoked=True)

        row = UserTokenPair(
            id=uuid4(),
            user_id=user_id,
            token=token,
            lifetime=self.token_lifetime,
            strategy=strategy,
            created=self.now(),
            revoked=False,
        )
        pairs[row.id] = row
        logger.info("Issued %s token for user %s", strategy.value, user_id)
        return row

    async def get_credentials(
        self,
        email: str,
        strategy: Strategy,
    ) -> Optional[Credentials[UUID]]:
        strategy = Strategy(strategy)
        for row in self._table(CREDENTIALS).values():
            if row.email == email and row.strategy == strategy:
                return row
        return None

    async def get_user_token_pair(self, token: str) -> Optional[UserTokenPair[UUID]]:
        now = self.now()
        candidates = [
            pair
            for pair in self._table(USER_TOKEN_PAIRS).values()
            if pair.token == token and pair.is_valid(now)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda pair: pair.created)

    async def get_user_by_id(self, user_id: UUID) -> Optional[User[UUID]]:
        return self._table(USERS).get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User[UUID]]:
        for user in self._table(USERS).values():
            if user.email == email:
                return user
        return None

    async def update_user_providers(
        self,
        user_id: UUID,
        provider: Strategy,
        provider_data: Any,
    ) -> UserProvider[UUID]:
        provider = Strategy(provider)
        data = serialize_provider_data(provider_data)
        row = await self._add_provider(user_id, provider, data)
        logger.info("Linked provider %s to user %s", provider.value, user_id)
        return row

    async def revoke_token(self, token: str) -> None:
        pairs = self._table(USER_TOKEN_PAIRS)
        revoked = 0
        for pair_id, pair in list(pairs.items()):
            if pair.token == token:
                pairs[pair_id] = replace(pair, revoked=True)
                revoked += 1
        logger.debug("Revoked %d token row(s)", revoked)

    def providers_for(self, user_id: UUID) -> list[UserProvider[UUID]]:
        """Return every provider linked to a user, oldest first."""
        return [
            link
            for link in self._table(USER_PROVIDERS).values()
            if link.user_id == user_id
        ]

    async def _add_provider(
        self,
        user_id: UUID,
        provider: Strategy,
        data: str,
    ) -> UserProvider[UUID]:
        self._require_user(user_id)
        row = UserProvider(id=uuid4(), user_id=user_id, provider=provider, data=data)
        self._table(USER_PROVIDERS)[row.id] = row
        return row

    def _require_connection(self) -> None:
        if not self._connected:
            raise StorageConnectionError("Storage is not connected; call connect() first")

    def _table(self, name: str) -> dict[UUID, Any]:
        self._require_connection()
        table = self._tables.get(name)
        if table is None:
            raise EngineError(f"no such table: {name}")
        return table

    def _require_user(self, user_id: UUID) -> None:
        if user_id not in self._table(USERS):
            raise EngineError(f"FOREIGN KEY constraint failed: unknown user {user_id}")
