"""Litestar application factory."""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import structlog
from advanced_alchemy.config.asyncio import AsyncSessionConfig
from litestar import Litestar
from litestar.datastructures import State
from litestar.openapi import OpenAPIConfig
from litestar.plugins.sqlalchemy import SQLAlchemyAsyncConfig, SQLAlchemyPlugin
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from readiness_engine import __version__
from readiness_engine.api import api_routers
from readiness_engine.core.config import settings
from readiness_engine.core.database import close_database, engine, init_database
from readiness_engine.services.scheduler import NightlyScheduler, set_scheduler

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def make_lifespan(
    db_engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    enable_scheduler: bool,
) -> Callable[[Litestar], AbstractAsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncIterator[None]:
        """Application lifespan manager.

        Handles startup and shutdown tasks:
        - Check the database on startup
        - Start the nightly recompute scheduler
        - Stop the scheduler and close connections on shutdown
        """
        logger.info(
            "Starting readiness-engine",
            version=__version__,
            nightly_recompute=settings.nightly_recompute_enabled and enable_scheduler,
        )

        await init_database(db_engine)

        scheduler = None
        if enable_scheduler:
            scheduler = NightlyScheduler(session_factory)
            set_scheduler(scheduler)
            await scheduler.start()

        yield

        if scheduler is not None:
            await scheduler.stop()
            set_scheduler(None)

        await close_database(db_engine)
        logger.info("Shutdown complete")

    return lifespan


def create_app(db_engine: AsyncEngine | None = None, enable_scheduler: bool = True) -> Litestar:
    """Create Litestar application.

    Args:
        db_engine: Engine to bind (defaults to the configured database)
        enable_scheduler: Start the nightly recompute scheduler

    Returns:
        Configured Litestar app instance
    """
    db_engine = db_engine or engine
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    return Litestar(
        route_handlers=api_routers,
        lifespan=[make_lifespan(db_engine, session_factory, enable_scheduler)],
        state=State({"session_factory": session_factory}),
        openapi_config=OpenAPIConfig(
            title="readiness-engine API",
            version=__version__,
            description="Adaptive readiness and training-load decision engine",
        ),
        plugins=[
            SQLAlchemyPlugin(
                config=SQLAlchemyAsyncConfig(
                    engine_instance=db_engine,
                    session_dependency_key="session",
                    session_config=AsyncSessionConfig(expire_on_commit=False),
                ),
            ),
        ],
        debug=settings.log_level == "DEBUG",
    )


# Application instance
app = create_app()
