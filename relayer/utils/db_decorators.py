"""
Database decorators for automatic error handling and rollback.

Provides decorators for async functions and methods that own a
unit of work on an SQLAlchemy session.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from relayer.utils.exceptions import PersistenceError


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    """Locate the session in kwargs, first positional arg or ``self.session``."""
    session = kwargs.get('session')
    if session is not None:
        return session

    if args:
        if isinstance(args[0], AsyncSession):
            return args[0]
        return getattr(args[0], 'session', None)

    return None


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that rolls back the session on any exception.

    Usage:
        class Handler:
            @with_rollback_on_error
            async def settle(self, ...):
                ...  # self.session is used

    The decorator will:
    1. Execute the wrapped function
    2. If an exception occurs, call session.rollback()
    3. Re-raise SQLAlchemy errors as PersistenceError, others unchanged

    Args:
        func: Async function to wrap. The session is taken from a 'session'
              keyword, an AsyncSession first argument, or ``self.session``.

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session argument found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}",
                    exc_info=True
                )
            if isinstance(e, SQLAlchemyError):
                raise PersistenceError(
                    f"{func.__name__} failed: {e}"
                ) from e
            raise

    return wrapper
