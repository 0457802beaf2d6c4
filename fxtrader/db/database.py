"""
Database engine and session management.

PostgreSQL (asyncpg) in production; any SQLAlchemy async URL works, the
pool options are only applied for PostgreSQL.
"""

from collections.abc import AsyncGenerator
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from fxtrader.core.config import settings
from fxtrader.core.exceptions import DatabaseError

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


def _engine_options() -> dict[str, Any]:
    """Engine keyword arguments for the configured backend."""
    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    if settings.is_postgres:
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=3600,
            connect_args={
                "command_timeout": 60,
                "server_settings": {
                    "application_name": settings.app_name.lower().replace(" ", "_"),
                    "jit": "off",
                },
            },
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session; rolled back on any error."""
    async with async_session_maker() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("db_session_error", error=str(e))
            raise DatabaseError("Operasi database gagal", details={"error_type": type(e).__name__}) from e
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, checkfirst=True))
        logger.info("db_tables_initialized")
    except SQLAlchemyError as e:
        # Another worker created the tables between our check and create
        if "already exists" in str(e):
            logger.info("db_tables_created_by_other_worker")
        else:
            logger.error("db_init_failed", error=str(e))
            raise


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()


async def check_database_health() -> bool:
    """Ping the database."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("db_health_check_failed", error=str(e))
        return False
