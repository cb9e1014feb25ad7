"""Engine and session lifecycle for the async SQLAlchemy layer.

Production runs on Neon Postgres through asyncpg; local runs and tests may
point ``DATABASE_URL`` at ``sqlite+aiosqlite``. The engine is created on
first use and disposed by the application lifespan.
"""

from typing import Annotated, Any, AsyncGenerator, Dict, Optional

from fastapi import Depends
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storyforge.app.core.config import Settings, settings
from storyforge.app.core.logging import get_logger

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def engine_options(database_url: str, config: Settings = settings) -> Dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    SQLite keeps SQLAlchemy's default pool. Postgres gets a sized pool with
    pre-ping and a short recycle, since Neon drops idle connections.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_size": config.db_pool_size,
        "max_overflow": config.db_max_overflow,
        "pool_timeout": config.db_pool_timeout,
        "pool_recycle": config.db_pool_recycle,
        "pool_pre_ping": config.db_pool_pre_ping,
        "connect_args": {"command_timeout": config.db_command_timeout},
    }


def get_async_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        url = settings.database_url
        _engine = create_async_engine(url, **engine_options(url))
        logger.info(f"Created async engine for {make_url(url).render_as_string(hide_password=True)}")
    return _engine


def get_async_session_maker() -> async_sessionmaker[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_async_engine(), expire_on_commit=False, autoflush=False
        )
    return _session_maker


async def close_async_engine() -> None:
    """Dispose the engine; a no-op when no request ever opened it."""
    global _engine, _session_maker
    if _engine is None:
        return
    engine, _engine, _session_maker = _engine, None, None
    await engine.dispose()
    logger.info("Database engine disposed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: committed on success, rolled back on error."""
    async with get_async_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


SessionDep = Annotated[AsyncSession, Depends(get_db)]
