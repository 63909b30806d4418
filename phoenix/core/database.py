"""Async SQLAlchemy engine, session factory and database client."""

from collections.abc import AsyncGenerator
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from phoenix.core.config import settings
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db.pool_size,
    max_overflow=settings.db.max_overflow,
    echo=settings.db.echo,
    # Disable prepared statement cache for PgBouncer compatibility
    connect_args={"statement_cache_size": 0},
)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting async database session.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


class DatabaseClient:
    """PostgreSQL client handling connectivity, schema creation and health."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def connect(self) -> None:
        """Test database connection."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        LOGGER.info("Database connection successful")

    async def create_tables(self) -> None:
        """Create the pgvector extension and any missing tables.

        Existing tables are left untouched.
        """
        # Register models on Base.metadata
        from phoenix.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            if self.engine.dialect.name == "postgresql":
                await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)
        LOGGER.info("Database tables created/verified successfully")

    async def disconnect(self) -> None:
        """Dispose of the connection pool."""
        try:
            await self.engine.dispose()
            LOGGER.info("Database connection closed")
        except Exception as e:
            LOGGER.error("Error closing database connection", exc_info=True, extra={"error": str(e)})

    async def health_check(self) -> Dict[str, Any]:
        """Report whether the database answers a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "healthy"}
        except Exception as e:
            LOGGER.warning(f"Database health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}


db_client = DatabaseClient(engine)


async def init_database() -> None:
    """Connect and create tables on startup."""
    await db_client.connect()
    await db_client.create_tables()


async def close_database() -> None:
    """Dispose of the engine on shutdown."""
    await db_client.disconnect()
