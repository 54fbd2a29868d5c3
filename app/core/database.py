# app/core/database.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Storage handle owned by the application lifespan.

    ``init`` builds the engine and session factory, ``teardown`` disposes the
    connection pool. Request handlers receive sessions through
    ``get_async_session`` instead of importing a module-level engine.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    def _engine_options(self) -> dict:
        if self.url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.url:
                options["poolclass"] = StaticPool
            return options
        return {
            "pool_size": 20,
            "max_overflow": 30,
            "pool_timeout": 60,
            "pool_recycle": 3600,  # Recycle connections every hour
            "pool_pre_ping": True,
        }

    async def init(self) -> None:
        if self.engine is not None:
            return
        self.engine = create_async_engine(self.url, echo=self.echo, **self._engine_options())
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info(f"Database engine initialised for {self.engine.url.render_as_string(hide_password=True)}")

    async def create_all(self) -> None:
        """Create all tables known to the ORM metadata"""
        import app.models  # noqa: F401  registers every mapper on Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def teardown(self) -> None:
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_maker = None
        logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self.session_maker is None:
            raise RuntimeError("Database.init() must be awaited before opening sessions")
        async with self.session_maker() as session:
            yield session


async def get_async_session(request: Request) -> AsyncIterator[AsyncSession]:
    db: Database = request.app.state.db
    async with db.session() as session:
        yield session
