# tests/unit/test_database.py
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from storefront.database import (
    Database,
    acquire_write_lock,
    apply_lock_timeout,
    is_transient_error,
    normalize_database_url,
)
from storefront.services.inventory_service import lock_product


class FakePgError(Exception):
    def __init__(self, sqlstate):
        super().__init__(f"pg error {sqlstate}")
        self.sqlstate = sqlstate


@pytest.mark.parametrize("url, expected", [
    ("postgres://u:p@db/store", "postgresql+asyncpg://u:p@db/store"),
    ("postgresql://u:p@db/store", "postgresql+asyncpg://u:p@db/store"),
    ("postgresql+asyncpg://u:p@db/store", "postgresql+asyncpg://u:p@db/store"),
    ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
])
def test_normalize_database_url(url, expected):
    assert normalize_database_url(url) == expected


def test_normalize_database_url_requires_a_value():
    with pytest.raises(ValueError):
        normalize_database_url("")


def test_session_before_open_raises():
    database = Database("sqlite+aiosqlite:///:memory:")
    assert not database.is_open
    with pytest.raises(RuntimeError):
        database.session()


@pytest.mark.asyncio
async def test_open_ping_close():
    database = Database("sqlite+aiosqlite:///:memory:").open()
    assert database.is_sqlite
    assert database.is_open
    assert await database.ping() is True

    await database.close()
    assert not database.is_open


@pytest.mark.parametrize("error", [
    TimeoutError(),
    asyncio.TimeoutError(),
    ConnectionResetError(),
    OperationalError("SELECT 1", {}, Exception("server closed the connection")),
    DBAPIError("SELECT 1", {}, FakePgError("40P01")),    # deadlock
    DBAPIError("SELECT 1", {}, FakePgError("55P03")),    # lock timeout
    DBAPIError("SELECT 1", {}, FakePgError("40001")),    # serialization failure
])
def test_transient_errors(error):
    assert is_transient_error(error) is True


@pytest.mark.parametrize("error", [
    RuntimeError("boom"),
    ValueError("bad"),
    IntegrityError("INSERT", {}, FakePgError("23505")),
    DBAPIError("SELECT 1", {}, FakePgError("42P01")),
])
def test_non_transient_errors(error):
    assert is_transient_error(error) is False


def _session_for(dialect_name):
    session = AsyncMock()
    bind = MagicMock()
    bind.dialect.name = dialect_name
    session.get_bind = MagicMock(return_value=bind)
    return session


@pytest.mark.asyncio
async def test_lock_timeout_set_on_postgres():
    session = _session_for("postgresql")

    await apply_lock_timeout(session, 3000)

    session.execute.assert_awaited_once()
    statement = session.execute.await_args.args[0]
    assert str(statement) == "SET LOCAL lock_timeout = 3000"


@pytest.mark.asyncio
@pytest.mark.parametrize("dialect_name, timeout", [("sqlite", 3000), ("postgresql", None), ("postgresql", 0)])
async def test_lock_timeout_skipped(dialect_name, timeout):
    session = _session_for(dialect_name)

    await apply_lock_timeout(session, timeout)

    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_write_lock_begins_immediate_on_sqlite():
    session = _session_for("sqlite")

    await acquire_write_lock(session)

    assert str(session.execute.await_args.args[0]) == "BEGIN IMMEDIATE"


@pytest.mark.asyncio
async def test_write_lock_skipped_on_postgres():
    session = _session_for("postgresql")

    await acquire_write_lock(session)

    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_sqlite_writers_take_turns():
    database = Database("sqlite+aiosqlite:///:memory:")
    order = []

    async def writer(name):
        async with database.serialized():
            order.append(f"{name} start")
            await asyncio.sleep(0.01)
            order.append(f"{name} end")

    await asyncio.gather(writer("first"), writer("second"))

    assert order == ["first start", "first end", "second start", "second end"]


@pytest.mark.asyncio
async def test_postgres_writers_are_not_serialized_in_process():
    database = Database("postgresql://u:p@db/store")

    async with database.serialized():
        async with database.serialized():
            pass


@pytest.mark.asyncio
async def test_lock_product_selects_for_update():
    session = AsyncMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    session.execute.return_value = result

    assert await lock_product(session, "A") is None

    statement = session.execute.await_args.args[0]
    compiled = str(statement.compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in compiled
    assert "products" in compiled
