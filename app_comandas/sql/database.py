# -*- coding: utf-8 -*-
"""Async engine and session factory, owned by whoever constructs them."""
import logging

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app_comandas.sql.models import Base

logger = logging.getLogger(__name__)


class Database:
    """Engine plus session factories for one database URL.

    ``session()`` is for units of work that write. ``read_session()`` is for lookups only.
    On SQLite, write sessions open their transaction with ``BEGIN IMMEDIATE`` so that concurrent
    writers wait for the database lock instead of failing on lock upgrade. Read sessions run
    their statements in autocommit and never hold the write lock.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        write_engine = self.engine
        if self.engine.dialect.name == "sqlite":
            _use_explicit_transactions(self.engine)
            write_engine = self.engine.execution_options(sqlite_begin="IMMEDIATE")
        self.session_factory = async_sessionmaker(
            write_engine, class_=AsyncSession, expire_on_commit=False
        )
        self.read_session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    def read_session(self) -> AsyncSession:
        return self.read_session_factory()

    async def create_all(self):
        """Create missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.error("Database ping failed: %s", exc)
            return False
        return True

    async def dispose(self):
        await self.engine.dispose()


def _use_explicit_transactions(engine):
    """Take BEGIN away from the sqlite3 driver and emit it only for write sessions."""
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        mode = conn.get_execution_options().get("sqlite_begin")
        if mode:
            conn.exec_driver_sql(f"BEGIN {mode}")
