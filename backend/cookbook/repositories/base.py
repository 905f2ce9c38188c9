"""
Shared plumbing for repositories.

Store and identity calls are blocking SQLAlchemy work; repositories run them
on a worker thread and convert any failure into an Error result.
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from cookbook.result import Error, RepositoryError, Result, Success

T = TypeVar("T")


async def run_blocking(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking call without stalling the event loop."""
    return await asyncio.to_thread(functools.partial(fn, *args, **kwargs))


def error_from(exc: BaseException, prefix: str = "") -> Error:
    """Wrap any exception into the single generic error type."""
    message = str(exc) or exc.__class__.__name__
    return Error(RepositoryError(f"{prefix}{message}"))


async def guarded(
    logger: logging.Logger,
    operation: str,
    call: Callable[[], Awaitable[T]],
    prefix: str = "",
) -> Result[T]:
    """Await call() and return Success(value), or Error on any exception."""
    try:
        return Success(await call())
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(f"{operation} failed: {e}", exc_info=True)
        return error_from(e, prefix)
