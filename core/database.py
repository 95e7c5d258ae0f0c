"""
Database engine and session management with SQLAlchemy async
"""

from typing import Any

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings
from core.exceptions import ConfigError
import logging

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine for one store.

    SQLite connections get foreign key enforcement switched on, since the
    answers table relies on it for referential integrity.
    """
    engine = create_async_engine(
        database_url,
        echo=settings.ENVIRONMENT == "debug",
        future=True,
        **kwargs
    )

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def enable_foreign_keys(dbapi_conn: Any, _connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create session factory bound to an engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def verify_connection(engine: AsyncEngine, store_name: str) -> None:
    """
    Check that a store is reachable.

    Raises:
        ConfigError: If the database cannot be reached
    """
    logger.info(f"Testing {store_name} database connection")
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        raise ConfigError(
            f"{store_name} database is unreachable",
            context={"store": store_name},
            original_exception=e
        )
    logger.info(f"{store_name} database connection established")
