"""Database initialization and session management."""

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from readiness_engine.core.config import settings

logger = structlog.get_logger()


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the database engine.

    Args:
        database_url: Override for the configured URL

    Returns:
        Async SQLAlchemy engine
    """
    url = database_url or settings.database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)

    return create_async_engine(
        url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_recycle=300,  # Recycle connections every 5 minutes
    )


# Global engine and session maker
engine = create_engine()
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_database(target: AsyncEngine | None = None) -> None:
    """Verify the database is reachable and report the migration version.

    Does NOT create tables; schema is managed by Alembic.

    Args:
        target: Engine to check (defaults to the global engine)
    """
    target = target or engine
    async with target.connect() as conn:
        if target.dialect.name != "postgresql":
            await conn.execute(text("SELECT 1"))
            logger.info("Database reachable", dialect=target.dialect.name)
            return

        result = await conn.execute(
            text(
                "SELECT EXISTS ("
                "SELECT FROM information_schema.tables "
                "WHERE table_name = 'alembic_version'"
                ")"
            )
        )
        has_migrations = result.scalar()

        if not has_migrations:
            logger.warning(
                "Database migrations have not been applied. "
                "Run 'alembic upgrade head' to initialize the database schema."
            )
        else:
            result = await conn.execute(text("SELECT version_num FROM alembic_version"))
            logger.info("Database initialized", migration_version=result.scalar())



async def close_database(target: AsyncEngine | None = None) -> None:
    """Close database connection pool."""
    await (target or engine).dispose()
