"""Database handle and session management."""

from collections.abc import AsyncGenerator, AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import Request
from sqlalchemy import RowMapping, event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from taskboard.config import Settings
from taskboard.db.base import Base

logger = structlog.get_logger()


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Process-scoped connection pool plus session factory.

    Created once per application, verified on startup with ``connect()`` and
    released with ``dispose()`` on shutdown. Every request or transaction
    borrows a session from it and returns it on exit, including error paths.
    """

    def __init__(self, settings: Settings):
        self.url = settings.database_url
        self.is_sqlite = self.url.startswith("sqlite")

        engine_kwargs: dict[str, Any] = {
            "pool_pre_ping": True,
            "echo": settings.debug,
        }
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_timeout=settings.database_pool_timeout,
            )

        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def connect(self) -> None:
        """Verify connectivity; the pool itself is created lazily."""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("database_connected", backend=self.engine.dialect.name)

    async def create_all(self) -> None:
        """Create every table known to the ORM metadata."""
        # Importing the models package registers all tables on Base.metadata
        import taskboard.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("database_disposed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Borrow a session; the caller decides when to commit."""
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Borrow a session inside BEGIN; commits on exit, rolls back on error."""
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> Sequence[RowMapping]:
        """Run one parameterized statement and return its rows as mappings."""
        async with self.transaction() as session:
            result = await session.execute(text(sql), params or {})
            if not result.returns_rows:
                return []
            return result.mappings().all()


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection."""
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
