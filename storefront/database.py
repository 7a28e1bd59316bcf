# storefront/database.py

import asyncio
import contextlib
import logging
from typing import Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from storefront.core.config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# SQLSTATEs worth retrying: serialization failure, deadlock, lock timeout, statement cancelled
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03", "57014"})


def normalize_database_url(database_url: str) -> str:
    """Point bare postgres URLs at the asyncpg driver."""
    if not database_url:
        raise ValueError("DATABASE_URL is not set")
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


class Database:
    """
    Handle on the relational store.

    Constructed explicitly, opened at application startup and closed at
    shutdown. Services receive the handle instead of reaching for a module-level
    engine.
    """

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
    ):
        self.url = normalize_database_url(database_url)
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> "Database":
        if self._engine is not None:
            return self

        if self.is_sqlite:
            kwargs = {"connect_args": {"check_same_thread": False}}
            if make_url(self.url).database in (None, "", ":memory:"):
                # In-memory databases only exist on a single connection
                kwargs["poolclass"] = StaticPool
            engine = create_async_engine(self.url, echo=self.echo, future=True, **kwargs)
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            engine = create_async_engine(
                self.url,
                echo=self.echo,
                future=True,
                pool_pre_ping=True,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_recycle=self.pool_recycle,
            )

        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=True,
        )
        logger.info("Database opened (%s)", engine.dialect.name)
        return self

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        logger.info("Database closed")
        self._engine = None
        self._sessionmaker = None

    def serialized(self):
        """
        Guard for read-check-write transactions; use as ``async with database.serialized():``.

        SQLite has no row locks and an in-memory store shares one connection,
        so writers in this process take turns. Other backends rely on row locks.
        """
        if self.is_sqlite:
            return self._write_lock
        return contextlib.nullcontext()

    def session(self) -> AsyncSession:
        """New session; use as ``async with database.session() as session``."""
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open")
        return self._sessionmaker()

    async def create_all(self) -> None:
        # Importing models registers every table on Base.metadata
        from storefront import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        from storefront import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        async with self.session() as session:
            await session.execute(text("SELECT 1"))
        return True


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def is_transient_error(exc: BaseException) -> bool:
    """
    True for store failures that leave nothing behind and may succeed on retry:
    lost connections, timeouts, lock waits, deadlocks.
    """
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        if isinstance(exc, (OperationalError, InterfaceError)):
            return True
        orig = getattr(exc, "orig", None)
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return sqlstate in TRANSIENT_SQLSTATES
    return False


async def apply_lock_timeout(session: AsyncSession, lock_timeout_ms: Optional[int]) -> None:
    """Bound row-lock waits for the current transaction (PostgreSQL only)."""
    if not lock_timeout_ms:
        return
    if session.get_bind().dialect.name != "postgresql":
        return
    # SET does not take bind parameters
    await session.execute(text(f"SET LOCAL lock_timeout = {int(lock_timeout_ms)}"))


async def acquire_write_lock(session: AsyncSession) -> None:
    """
    Take the SQLite database write lock at the start of the transaction, where
    FOR UPDATE is not supported. Must be the first statement of the transaction.
    """
    if session.get_bind().dialect.name != "sqlite":
        return
    # The driver defers BEGIN until the first write; open the transaction here instead
    await session.execute(text("BEGIN IMMEDIATE"))
