"""SQLAlchemy implementation of AuthStorage.

Works with any SQLAlchemy async dialect (SQLite through aiosqlite and
PostgreSQL through asyncpg are the supported targets). Identifiers are
integers assigned by the database.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import event, false, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from authvault.domain import (
    Credentials,
    Strategy,
    User,
    UserInfo,
    UserProvider,
    UserTokenPair,
    ensure_tz_aware,
)
from authvault.exceptions import (
    DuplicateCredentialsError,
    EmailAlreadyExistsError,
    EngineError,
    StorageConnectionError,
)
from authvault.persistence._payload import serialize_provider_data
from authvault.persistence.sqlalchemy.models import (
    CredentialsModel,
    UserModel,
    UserProviderModel,
    UserTokenPairModel,
)
from authvault.persistence.sqlalchemy.schema import create_schema, verify_schema
from authvault.storage import AuthStorage, Clock

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_unique_violation(error: IntegrityError) -> bool:
    message = str(error).lower()
    return "unique" in message or "duplicate key" in message


class SQLAlchemyStorage(AuthStorage[int]):
    """
    SQLAlchemy implementation of AuthStorage.

    Every operation runs in its own short-lived session. Multi-statement
    operations (user creation, token issuance) run inside one transaction,
    so a failure part-way leaves nothing behind.
    """

    def __init__(
        self,
        token_lifetime: int,
        database_url: str,
        *,
        echo: bool = False,
        clock: Optional[Clock] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        """Initialize the storage.

        Parameters
        ----------
        token_lifetime
            Seconds a newly issued token remains valid
        database_url
            SQLAlchemy async database URL
        echo
            Log every SQL statement
        clock
            Source of the current time for token creation and validity
        engine
            Pre-built engine to use instead of creating one from the URL.
            The caller keeps ownership and disposes it.
        """
        super().__init__(token_lifetime, clock)
        self._database_url = database_url
        self._echo = echo
        self._engine = engine
        self._owns_engine = engine is None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None or self._session_factory is None:
            raise StorageConnectionError("Storage is not connected; call connect() first")
        return self._engine

    async def connect(self) -> None:
        if self._session_factory is not None:
            return

        if self._engine is None:
            self._engine = create_async_engine(
                self._database_url,
                echo=self._echo,
                pool_pre_ping=True,
            )
        sync_engine = self._engine.sync_engine
        if sync_engine.dialect.name == "sqlite" and not event.contains(
            sync_engine, "connect", _enable_sqlite_foreign_keys
        ):
            event.listen(sync_engine, "connect", _enable_sqlite_foreign_keys)

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            if self._owns_engine:
                await self._engine.dispose()
                self._engine = None
            raise StorageConnectionError(
                f"Cannot connect to {self._engine_display()}",
            ) from e

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Connected to %s", self._engine_display())

    async def close(self) -> None:
        self._session_factory = None
        if self._engine is not None and self._owns_engine:
            await self._engine.dispose()
            self._engine = None
            logger.info("Disconnected from %s", self._engine_display())

    async def initialize(self) -> None:
        await create_schema(self.engine)

    async def validate(self) -> None:
        await verify_schema(self.engine)

    async def create_user(
        self,
        user_info: UserInfo,
        provider: Strategy,
        provider_data: Any,
    ) -> User[int]:
        provider = Strategy(provider)
        data = serialize_provider_data(provider_data)

        async with self._session() as session:
            model = UserModel(
                email=user_info.email,
                username=user_info.username,
                first_name=user_info.first_name,
                last_name=user_info.last_name,
                date_of_birth=user_info.date_of_birth,
                gender=user_info.gender,
                picture=user_info.picture,
            )
            session.add(model)
            try:
                await session.flush()
            except IntegrityError as e:
                if _is_unique_violation(e):
                    raise EmailAlreadyExistsError(user_info.email) from e
                raise
            user_id = model.id

            try:
                await self._add_provider(session, user_id, provider, data)
            except Exception:
                logger.warning(
                    "Linking provider %s failed; rolling back user %s",
                    provider.value,
                    user_info.email,
                )
                raise

        logger.info("Created user %s (email: %s)", user_id, user_info.email)
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise EngineError(f"Created user {user_id} could not be read back")
        return user

    async def create_credentials(
        self,
        user_id: int,
        email: str,
        password_hash: str,
        salt: str,
        strategy: Strategy,
    ) -> Credentials[int]:
        strategy = Strategy(strategy)

        async with self._session() as session:
            model = CredentialsModel(
                user_id=user_id,
                email=email,
                password=password_hash,
                salt=salt,
                strategy=strategy.value,
            )
            session.add(model)
            try:
                await session.flush()
            except IntegrityError as e:
                if _is_unique_violation(e):
                    raise DuplicateCredentialsError(email, strategy.value) from e
                raise
            credentials_id = model.id

        logger.info("Created %s credentials for user %s", strategy.value, user_id)
        async with self._session() as session:
            stored = await session.get(CredentialsModel, credentials_id)
            if stored is None:
                raise EngineError(
                    f"Created credentials {credentials_id} could not be read back",
                )
            return self._to_credentials(stored)

    async def create_token(
        self,
        user_id: int,
        token: str,
        strategy: Strategy,
    ) -> UserTokenPair[int]:
        strategy = Strategy(strategy)
        created = self.now()

        async with self._session() as session:
            # Revoke before insert: never two valid tokens for one user
            await session.execute(
                update(UserTokenPairModel)
                .where(UserTokenPairModel.user_id == user_id)
                .values(revoked=True),
            )
            model = UserTokenPairModel(
                user_id=user_id,
                token=token,
                lifetime=self.token_lifetime,
                strategy=strategy.value,
                created=created,
                revoked=False,
            )
            session.add(model)
            await session.flush()
            token_id = model.id

        logger.info("Issued %s token for user %s", strategy.value, user_id)
        async with self._session() as session:
            stored = await session.get(UserTokenPairModel, token_id)
            if stored is None:
                raise EngineError(f"Created token {token_id} could not be read back")
            return self._to_token_pair(stored)

    async def get_credentials(
        self,
        email: str,
        strategy: Strategy,
    ) -> Optional[Credentials[int]]:
        stmt = select(CredentialsModel).where(
            CredentialsModel.email == email,
            CredentialsModel.strategy == Strategy(strategy).value,
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
        return self._to_credentials(model) if model else None

    async def get_user_token_pair(self, token: str) -> Optional[UserTokenPair[int]]:
        stmt = (
            select(UserTokenPairModel)
            .where(
                UserTokenPairModel.token == token,
                UserTokenPairModel.revoked == false(),
            )
            .order_by(UserTokenPairModel.created.desc(), UserTokenPairModel.id.desc())
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            models = result.scalars().all()

        now = self.now()
        for model in models:
            pair = self._to_token_pair(model)
            if pair.is_valid(now):
                return pair
        return None

    async def get_user_by_id(self, user_id: int) -> Optional[User[int]]:
        stmt = select(UserModel).where(UserModel.id == user_id)
        async with self._session() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
        return self._to_user(model) if model else None

    async def get_user_by_email(self, email: str) -> Optional[User[int]]:
        stmt = select(UserModel).where(UserModel.email == email)
        async with self._session() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
        return self._to_user(model) if model else None

    async def update_user_providers(
        self,
        user_id: int,
        provider: Strategy,
        provider_data: Any,
    ) -> UserProvider[int]:
        provider = Strategy(provider)
        data = serialize_provider_data(provider_data)

        async with self._session() as session:
            model = await self._add_provider(session, user_id, provider, data)
            link_id = model.id

        logger.info("Linked provider %s to user %s", provider.value, user_id)
        async with self._session() as session:
            stored = await session.get(UserProviderModel, link_id)
            if stored is None:
                raise EngineError(f"Created provider link {link_id} could not be read back")
            return self._to_provider(stored)

    async def revoke_token(self, token: str) -> None:
        async with self._session() as session:
            result = await session.execute(
                update(UserTokenPairModel)
                .where(UserTokenPairModel.token == token)
                .values(revoked=True),
            )
            revoked = result.rowcount
        logger.debug("Revoked %d token row(s)", revoked)

    async def _add_provider(
        self,
        session: AsyncSession,
        user_id: int,
        provider: Strategy,
        data: str,
    ) -> UserProviderModel:
        model = UserProviderModel(user_id=user_id, provider=provider.value, data=data)
        session.add(model)
        await session.flush()
        return model

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session with a transaction, committed on success.

        Driver errors surface as EngineError with the original as cause.
        """
        if self._session_factory is None:
            raise StorageConnectionError("Storage is not connected; call connect() first")
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            raise EngineError(str(e)) from e

    def _engine_display(self) -> str:
        url = self._database_url
        return url.split("@")[-1] if "@" in url else url

    def _to_user(self, model: UserModel) -> User[int]:
        return User(
            id=model.id,
            email=model.email,
            username=model.username,
            first_name=model.first_name,
            last_name=model.last_name,
            date_of_birth=model.date_of_birth,
            gender=model.gender,
            picture=model.picture,
        )

    def _to_credentials(self, model: CredentialsModel) -> Credentials[int]:
        return Credentials(
            id=model.id,
            user_id=model.user_id,
            email=model.email,
            password_hash=model.password,
            salt=model.salt,
            strategy=Strategy(model.strategy),
        )

    def _to_provider(self, model: UserProviderModel) -> UserProvider[int]:
        return UserProvider(
            id=model.id,
            user_id=model.user_id,
            provider=Strategy(model.provider),
            data=model.data,
        )

    def _to_token_pair(self, model: UserTokenPairModel) -> UserTokenPair[int]:
        return UserTokenPair(
            id=model.id,
            user_id=model.user_id,
            token=model.token,
            lifetime=model.lifetime,
            strategy=Strategy(model.strategy),
            created=ensure_tz_aware(model.created),
            revoked=bool(model.revoked),
        )
