"""
Database utilities for connection management and error handling
"""
import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Any, TypeVar, cast, Awaitable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import ConcurrentModification

logger = logging.getLogger(__name__)

# Define a type variable for the return type of the decorated function
T = TypeVar('T')

CONNECTION_ERRORS = (
    "ConnectionError", "OperationalError",
    "ConnectionDoesNotExistError", "ConnectionRefusedError",
)

def with_db_retry(
    max_retries: int = 3,
    retry_delay: float = 0.5
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator that retries database operations on connection errors.

    Args:
        max_retries: Maximum number of retries before giving up
        retry_delay: Delay between retries in seconds

    Returns:
        Decorated function with retry logic
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0
            last_error = None

            while retries <= max_retries:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    error_name = type(e).__name__
                    if any(err in error_name for err in CONNECTION_ERRORS):
                        retries += 1
                        last_error = e

                        if retries <= max_retries:
                            delay = retry_delay * (2 ** (retries - 1))  # Exponential backoff
                            logger.warning(
                                f"Database connection error: {str(e)}. "
                                f"Retrying in {delay:.2f}s... (Attempt {retries}/{max_retries})"
                            )
                            await asyncio.sleep(delay)
                        continue
                    else:
                        raise

            logger.error(f"Database operation failed after {max_retries} retries: {last_error}")
            if last_error:
                raise last_error
            else:
                raise RuntimeError("Database operation failed with unknown error")

        return cast(Callable[..., Awaitable[T]], wrapper)

    return decorator


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit every change made inside the block at once, or none of them.

    Account, budget, transaction and notification writes of one ledger
    operation share the session transaction. Any exception rolls the whole
    set back before propagating; a version conflict on Account or Budget is
    re-raised as ``ConcurrentModification``.
    """
    try:
        yield db
        await db.commit()
    except StaleDataError as e:
        await db.rollback()
        logger.warning(f"Concurrent modification detected: {str(e)}")
        raise ConcurrentModification() from e
    except BaseException:
        await db.rollback()
        raise
