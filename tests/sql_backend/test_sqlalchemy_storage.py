"""Tests specific to SQLAlchemyStorage, on a SQLite file database."""

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import create_async_engine

from authvault import (
    EngineError,
    SchemaError,
    StorageConnectionError,
    Strategy,
    UserInfo,
)
from authvault.persistence.sqlalchemy import (
    SQLAlchemyStorage,
    UserProviderModel,
    UserTokenPairModel,
    drop_schema,
    verify_schema,
)
from tests.shared.fixtures.sqlite import sqlite_url

ALICE = UserInfo(email="alice@example.com", username="alice")


class TestConnection:
    """Tests for connect, close and operations without a connection."""

    @pytest.mark.asyncio
    async def test_unreachable_database_raises(self, tmp_path):
        storage = SQLAlchemyStorage(
            3600,
            sqlite_url(tmp_path / "missing" / "dir"),
        )

        with pytest.raises(StorageConnectionError):
            await storage.connect()

    @pytest.mark.asyncio
    async def test_operations_require_connection(self, tmp_path):
        storage = SQLAlchemyStorage(3600, sqlite_url(tmp_path))

        with pytest.raises(StorageConnectionError):
            await storage.get_user_by_email(ALICE.email)

    @pytest.mark.asyncio
    async def test_reconnect_after_close(self, sql_storage):
        user = await sql_storage.create_user(ALICE, Strategy.PASSWORD, {})

        await sql_storage.close()
        await sql_storage.connect()

        assert await sql_storage.get_user_by_id(user.id) == user

    @pytest.mark.asyncio
    async def test_injected_engine_is_not_disposed(self, sql_storage, clock):
        other = SQLAlchemyStorage(3600, "unused://", engine=sql_storage.engine, clock=clock)
        await other.connect()
        await other.close()

        assert await sql_storage.get_user_by_email(ALICE.email) is None

    def test_token_lifetime_must_be_positive(self, tmp_path):
        with pytest.raises(ValueError):
            SQLAlchemyStorage(0, sqlite_url(tmp_path))


class TestSchema:
    """Tests for initialize and validate."""

    @pytest.mark.asyncio
    async def test_validate_before_initialize_names_relation(self, tmp_path):
        storage = SQLAlchemyStorage(3600, sqlite_url(tmp_path))
        await storage.connect()
        try:
            with pytest.raises(SchemaError) as exc_info:
                await storage.validate()
        finally:
            await storage.close()

        assert exc_info.value.relation == "users"

    @pytest.mark.asyncio
    async def test_validate_reports_missing_relation(self, sql_storage):
        async with sql_storage.engine.begin() as conn:
            await conn.execute(text("DROP TABLE user_providers"))

        with pytest.raises(SchemaError, match="user_providers"):
            await sql_storage.validate()

    @pytest.mark.asyncio
    async def test_initialize_restores_dropped_relation(self, sql_storage):
        async with sql_storage.engine.begin() as conn:
            await conn.execute(text("DROP TABLE user_providers"))

        await sql_storage.initialize()

        await sql_storage.validate()

    @pytest.mark.asyncio
    async def test_operations_before_initialize_raise_engine_error(self, tmp_path):
        storage = SQLAlchemyStorage(3600, sqlite_url(tmp_path))
        await storage.connect()
        try:
            with pytest.raises(EngineError):
                await storage.get_user_by_email(ALICE.email)
        finally:
            await storage.close()

    @pytest.mark.asyncio
    async def test_verify_schema_unreachable_database(self, tmp_path):
        """Connection failures during validation surface as SchemaError."""
        engine = create_async_engine(sqlite_url(tmp_path / "missing" / "dir"))
        try:
            with pytest.raises(SchemaError, match="Cannot connect"):
                await verify_schema(engine)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_token_table_has_database_defaults(self, sql_storage):
        """Rows written outside the storage get created and revoked defaults."""
        user = await sql_storage.create_user(ALICE, Strategy.PASSWORD, {})
        async with sql_storage.engine.begin() as conn:
            await conn.execute(
                text(
                    "INSERT INTO user_token_pairs (user_id, token, lifetime, strategy) "
                    "VALUES (:user_id, 'tok-raw', 60, 'password')"
                ),
                {"user_id": user.id},
            )
            row = (
                await conn.execute(
                    select(UserTokenPairModel.created, UserTokenPairModel.revoked).where(
                        UserTokenPairModel.token == "tok-raw",
                    ),
                )
            ).one()

        assert row.created is not None
        assert bool(row.revoked) is False

    @pytest.mark.asyncio
    async def test_drop_schema(self, sql_storage):
        await drop_schema(sql_storage.engine)

        with pytest.raises(SchemaError):
            await sql_storage.validate()


class TestPersistedRows:
    """Tests that inspect the rows the storage writes."""

    @pytest.mark.asyncio
    async def test_create_user_links_initial_provider(self, sql_storage):
        user = await sql_storage.create_user(ALICE, Strategy.GOOGLE, {"sub": "g-1"})

        async with sql_storage.engine.connect() as conn:
            rows = (
                await conn.execute(
                    select(UserProviderModel.provider, UserProviderModel.data).where(
                        UserProviderModel.user_id == user.id,
                    ),
                )
            ).all()

        assert [tuple(row) for row in rows] == [("google", '{"sub": "g-1"}')]

    @pytest.mark.asyncio
    async def test_token_rows_are_revoked_not_deleted(self, sql_storage):
        user = await sql_storage.create_user(ALICE, Strategy.PASSWORD, {})
        await sql_storage.create_token(user.id, "tok-1", Strategy.PASSWORD)
        await sql_storage.create_token(user.id, "tok-2", Strategy.PASSWORD)
        await sql_storage.create_token(user.id, "tok-3", Strategy.PASSWORD)

        async with sql_storage.engine.connect() as conn:
            rows = (
                await conn.execute(
                    select(UserTokenPairModel.token, UserTokenPairModel.revoked).order_by(
                        UserTokenPairModel.id,
                    ),
                )
            ).all()

        assert [(token, bool(revoked)) for token, revoked in rows] == [
            ("tok-1", True),
            ("tok-2", True),
            ("tok-3", False),
        ]

    @pytest.mark.asyncio
    async def test_create_token_reads_back_token_row(self, sql_storage):
        """The returned row comes from user_token_pairs, not credentials."""
        user = await sql_storage.create_user(ALICE, Strategy.PASSWORD, {})
        await sql_storage.create_credentials(
            user.id, ALICE.email, "hash", "salt", Strategy.PASSWORD
        )

        pair = await sql_storage.create_token(user.id, "tok-1", Strategy.PASSWORD)

        async with sql_storage.engine.connect() as conn:
            stored_id = (
                await conn.execute(
                    select(UserTokenPairModel.id).where(UserTokenPairModel.token == "tok-1"),
                )
            ).scalar_one()
        assert pair.id == stored_id
        assert pair.token == "tok-1"

    @pytest.mark.asyncio
    async def test_reissuing_same_token_string(self, sql_storage):
        """Re-issuing an identical token string yields one valid row."""
        user = await sql_storage.create_user(ALICE, Strategy.PASSWORD, {})
        await sql_storage.create_token(user.id, "tok-1", Strategy.PASSWORD)

        latest = await sql_storage.create_token(user.id, "tok-1", Strategy.PASSWORD)

        assert await sql_storage.get_user_token_pair("tok-1") == latest
        async with sql_storage.engine.connect() as conn:
            count = (
                await conn.execute(
                    select(func.count()).select_from(UserTokenPairModel),
                )
            ).scalar_one()
        assert count == 2

    @pytest.mark.asyncio
    async def test_engine_error_keeps_driver_cause(self, sql_storage):
        with pytest.raises(EngineError) as exc_info:
            await sql_storage.create_token(10_000, "tok-1", Strategy.PASSWORD)

        assert exc_info.value.__cause__ is not None
