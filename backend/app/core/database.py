from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger()


def _get_environment_info() -> str:
    """Get human-readable database backend information"""
    if settings.DATABASE_URL.startswith("sqlite"):
        return "SQLITE"
    elif "localhost" in settings.DATABASE_URL or "127.0.0.1" in settings.DATABASE_URL:
        return "LOCAL"
    return "REMOTE"


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

async_session_maker = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)


async def init_db():
    """Initialize database connection and create tables when enabled"""
    # Register every table on the metadata before create_all
    from app import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            if settings.AUTO_CREATE_TABLES:
                await conn.run_sync(SQLModel.metadata.create_all)
        logger.info(
            f"Database connection established successfully ({_get_environment_info()})"
        )
    except Exception as e:
        logger.error(f"Database connection failed ({_get_environment_info()}): {e}")
        raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


def get_session_maker() -> async_sessionmaker:
    """Session factory for long-lived connections that open sessions per message"""
    return async_session_maker
