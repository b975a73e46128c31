from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from backend.app.core.config import settings
from backend.app.core.errors import ConflictError, StoreError


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine; SQLite connections start every transaction with BEGIN IMMEDIATE."""
    if url.startswith("sqlite"):
        sqlite_engine = create_async_engine(url)

        @event.listens_for(sqlite_engine.sync_engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(sqlite_engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return sqlite_engine

    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = build_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a scoped AsyncSession for request handling."""
    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed block as one unit of work.

    Any exception rolls the whole unit back before it propagates. Store
    failures are re-raised as ConflictError (constraint violations) or
    StoreError (everything else) so no driver detail reaches the caller.
    """
    try:
        async with session.begin():
            yield session
    except IntegrityError as exc:
        logger.warning(f"Store rejected write: {exc.orig}")
        raise ConflictError("StoreConflict", "The change conflicts with the current state of the record.") from exc
    except SQLAlchemyError as exc:
        logger.exception("Store failure, transaction rolled back")
        raise StoreError() from exc
