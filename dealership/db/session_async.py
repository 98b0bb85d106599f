# dealership/db/session_async.py
"""Engine y sesiones async de la aplicación."""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dealership.core.config import settings
from dealership.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _engine_options(url: str) -> dict[str, Any]:
    # SQLite (dev/tests) no usa pool de conexiones remotas
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {"pool_pre_ping": True}


async_engine: AsyncEngine = create_async_engine(
    settings.ASYNC_DATABASE_URL,
    **_engine_options(settings.ASYNC_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_db() -> AsyncIterator[AsyncSession]:
    """Dependencia FastAPI: una AsyncSession por request."""
    async with AsyncSessionLocal() as session:
        yield session


async def run_in_transaction(
    operation: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    """Run ``operation`` in its own session, committing on success."""
    async with AsyncSessionLocal() as session:
        try:
            result = await operation(session)
            await session.commit()
            return result
        except Exception:
            logger.warning("Transaction rolled back")
            await session.rollback()
            raise
