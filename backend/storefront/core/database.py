"""
Storefront Database Configuration

Owns the AsyncEngine and hands out sessions in two shapes: read scopes
(`session()`) and atomic write units (`run_in_transaction()`). Opening the
engine is retried with exponential backoff.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Optional, TypeVar

from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
import structlog

from .config import Settings, get_settings
from ..models import Base

logger = structlog.get_logger()

T = TypeVar("T")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores foreign keys unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _log_connect_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "Database not reachable, retrying",
        attempt=retry_state.attempt_number,
        sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


class DatabaseManager:
    """
    Database connection manager and transactional resource.

    Sessions handed out by `session()` are read scopes: they are closed on
    exit and never committed. Writes go through `run_in_transaction()`,
    which commits when the callable returns and rolls back on any
    exception, releasing the connection on every exit path.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    def _engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.settings.DEBUG}
        if not self.settings.is_sqlite:
            options.update(
                pool_size=self.settings.DATABASE_POOL_SIZE,
                max_overflow=self.settings.DATABASE_MAX_OVERFLOW,
                pool_timeout=self.settings.DATABASE_POOL_TIMEOUT,
                pool_recycle=self.settings.DATABASE_POOL_RECYCLE,
                pool_pre_ping=True,
            )
        return options

    async def _open_engine(self) -> AsyncEngine:
        """Build the engine and prove it can run a query."""
        engine = create_async_engine(self.settings.DATABASE_URL, **self._engine_options())
        if self.settings.is_sqlite:
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            await engine.dispose()
            raise
        return engine

    async def initialize(self) -> None:
        """Open the engine and session factory; a second call is a no-op."""
        if self.engine is not None:
            return

        started = time.time()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.DATABASE_CONNECT_RETRIES),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(
                    (OperationalError, ConnectionError, OSError)
                ),
                before_sleep=_log_connect_retry,
                reraise=True,
            ):
                with attempt:
                    self.engine = await self._open_engine()
        except Exception as e:
            logger.error("Database unavailable", error=str(e), exc_info=True)
            raise

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database ready",
            sqlite=self.settings.is_sqlite,
            duration_seconds=round(time.time() - started, 3),
        )

    def _factory(self) -> async_sessionmaker:
        if self.session_factory is None:
            raise RuntimeError("DatabaseManager.initialize() has not been awaited")
        return self.session_factory

    async def create_tables(self) -> None:
        """Create missing tables from the model metadata."""
        if self.engine is None:
            raise RuntimeError("DatabaseManager.initialize() has not been awaited")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Read scope; its implicit transaction is rolled back on exit."""
        async with self._factory()() as session:
            yield session

    async def run_in_transaction(
        self, fn: Callable[[AsyncSession], Awaitable[T]]
    ) -> T:
        """
        Run `fn(session)` as one atomic unit.

        Commits when `fn` returns; rolls back and re-raises on any exception.
        The result of `fn` is returned only after the commit succeeded.
        """
        factory = self._factory()
        started = time.time()

        async with factory() as session:
            try:
                async with session.begin():
                    result = await fn(session)
            except Exception as e:
                logger.warning(
                    "Transaction rolled back",
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_ms=(time.time() - started) * 1000,
                )
                raise

        logger.debug(
            "Transaction committed", duration_ms=(time.time() - started) * 1000
        )
        return result

    async def health_check(self) -> Dict[str, Any]:
        """Probe the database with a trivial query."""
        if self.engine is None:
            return {"status": "not_initialized"}

        started = time.time()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database probe failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

        return {
            "status": "healthy",
            "response_time_ms": (time.time() - started) * 1000,
        }

    async def close(self) -> None:
        """Dispose of the engine and its pool."""
        if self.engine is None:
            return

        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database engine disposed")
