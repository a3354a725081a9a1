from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import friendping.db.base  # noqa: F401
from friendping.core.errors import StoreUnavailableError
from friendping.db.base_class import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with FK enforcement off; queue rows rely on it.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Store client: owns the engine and the session factory.

    Built once at startup and handed to whatever needs sessions; nothing
    connects at import time.
    """

    def __init__(self, database_url: str, *, echo: bool = False, null_pool: bool = False):
        engine_kwargs: dict[str, object] = {
            "echo": echo,
            "pool_pre_ping": True,
        }
        if null_pool:
            engine_kwargs["poolclass"] = NullPool

        self.engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.sessionmaker = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    async def sessions(self) -> AsyncIterator[AsyncSession]:
        async with self.sessionmaker() as session:
            yield session

    async def check_connection(self) -> None:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(sa.text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.exception("Error connecting to database")
            raise StoreUnavailableError("Failed to connect to database") from exc
        logger.info("Connected to database")

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection closed")


def build_database(settings) -> Database:
    return Database(
        settings.database_url,
        echo=settings.env == "local",
        null_pool=settings.env == "test",
    )
