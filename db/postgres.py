"""PostgreSQL connection with configurable connection pooling.

Pool configuration via environment variables:
- POSTGRES_POOL_MIN_SIZE: Minimum connections (default: 2)
- POSTGRES_POOL_MAX_SIZE: Maximum connections (default: 10)
- POSTGRES_POOL_RECYCLE: Connection recycle time in seconds (default: 3600)

Only connection bootstrap is retried. Reads and writes issued by the stores
surface their failures to the caller unchanged.
"""

import asyncio
import random
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from config import get_settings
from utils.logging import get_logger

logger = get_logger(__name__)

engine = None
async_session_maker = None

T = TypeVar("T")

POSTGRES_RETRYABLE_EXCEPTIONS = (
    OperationalError,
    InterfaceError,
    DBAPIError,
    SQLAlchemyTimeoutError,
    ConnectionError,
    TimeoutError,
    OSError,
)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy declarative models."""

    pass


def calculate_backoff(
    attempt: int, base_delay: float = 1.0, max_delay: float = 8.0
) -> float:
    """Exponential backoff for ``attempt`` (0-indexed), capped, plus up to 1s jitter."""
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + random.uniform(0, 1)


def is_retryable_error(exc: Exception) -> bool:
    """True for transient connection errors; DBAPIError only on disconnect."""
    if isinstance(exc, POSTGRES_RETRYABLE_EXCEPTIONS):
        if isinstance(exc, DBAPIError) and not exc.connection_invalidated:
            return False
        return True
    return False


async def with_retry(
    operation: Callable[..., T],
    *args: Any,
    max_retries: int = 3,
    base_delay: float = 1.0,
    operation_name: str = "database operation",
    **kwargs: Any,
) -> T:
    """Execute an async operation, retrying transient connection errors.

    Args:
        operation: Async callable to execute
        max_retries: Maximum number of retry attempts
        base_delay: Base delay for exponential backoff
        operation_name: Name for logging purposes

    Raises:
        The last exception once retries are exhausted, or immediately for
        non-retryable errors.
    """
    for attempt in range(max_retries + 1):
        try:
            return await operation(*args, **kwargs)
        except Exception as e:
            if not is_retryable_error(e):
                logger.error(
                    f"Non-retryable error in {operation_name}: {type(e).__name__}: {e}"
                )
                raise

            if attempt >= max_retries:
                logger.error(
                    f"{operation_name} failed after {max_retries + 1} attempts. "
                    f"Last error: {type(e).__name__}: {e}"
                )
                raise

            delay = calculate_backoff(attempt, base_delay)
            logger.warning(
                f"{operation_name} attempt {attempt + 1}/{max_retries + 1} failed: "
                f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    raise RuntimeError(f"Unexpected state in retry for {operation_name}")


async def init_postgres():
    """Create the engine and session factory, then create missing tables."""
    global engine, async_session_maker
    settings = get_settings()

    logger.info(
        f"Initializing PostgreSQL connection pool: "
        f"min={settings.postgres_pool_min_size}, max={settings.postgres_pool_max_size}, "
        f"recycle={settings.postgres_pool_recycle}s"
    )

    engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.postgres_pool_min_size,
        max_overflow=settings.postgres_pool_max_size - settings.postgres_pool_min_size,
        pool_recycle=settings.postgres_pool_recycle,
    )

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Register the tables on Base.metadata
    import models.postgres  # noqa: F401

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    await with_retry(
        create_tables,
        max_retries=3,
        base_delay=1.0,
        operation_name="PostgreSQL table creation",
    )

    logger.info("PostgreSQL connection pool initialized successfully")


async def close_postgres():
    """Close PostgreSQL connection pool."""
    global engine
    if engine:
        await engine.dispose()
        logger.info("PostgreSQL connection pool closed")


def get_session_maker() -> async_sessionmaker:
    """Session factory used by the SQL stores."""
    if async_session_maker is None:
        raise RuntimeError("PostgreSQL is not initialized; call init_postgres() first")
    return async_session_maker
