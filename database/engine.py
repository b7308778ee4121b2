import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase

from core.config import Settings

logger = logging.getLogger(__name__)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    url = make_url(settings.database_url)
    logger.info(f"Connecting to database at {url.render_as_string(hide_password=True)}")
    options = {"echo": settings.debug and settings.app_env == "development"}
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = settings.database_pool_size
        options["pool_pre_ping"] = True
    return create_async_engine(settings.database_url, **options)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory injected into the pipeline, the API and the workers."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Dependency to get DB session
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.sessionmaker() as session:
        yield session


# Function to initialize the database (create tables)
async def init_db(engine: AsyncEngine) -> None:
    # Register models on Base.metadata
    import database.models.video_analyses  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Function to close database connections
async def close_db(engine: AsyncEngine) -> None:
    """Close database engine and connections."""
    await engine.dispose()
