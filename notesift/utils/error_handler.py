"""Shared error-handling helpers.

Store-side operations that may fail on a single note (unreadable YAML, odd
encodings) log the failure and fall back to a default so one bad note never
aborts a whole vault scan.
"""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class ErrorHandler:
    """Logging fallbacks for recoverable failures."""

    @staticmethod
    def log_and_return_default(
        operation_name: str, exception: Exception, default_value: T, **kwargs: Any
    ) -> T:
        logger.warning(
            f"Failed to {operation_name}",
            error=str(exception),
            error_type=type(exception).__name__,
            **kwargs,
        )
        return default_value

    @staticmethod
    def log_and_reraise(operation_name: str, exception: Exception, **kwargs: Any) -> None:
        logger.error(f"Failed to {operation_name}", error=str(exception), **kwargs)
        raise exception


def handle_errors(
    operation_name: str,
    default_return: Any = None,
    reraise: bool = False,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    **log_kwargs: Any,
):
    """
    Decorator that logs failures of the wrapped sync or async function.

    Args:
        operation_name: Name of the operation, used in the log message
        default_return: Value returned when an error is swallowed
        reraise: Re-raise after logging instead of returning the default
        exceptions: Exception types to handle; anything else propagates
        **log_kwargs: Extra fields added to the log event
    """

    def recover(error: Exception) -> Any:
        if reraise:
            ErrorHandler.log_and_reraise(operation_name, error, **log_kwargs)
        return ErrorHandler.log_and_return_default(
            operation_name, error, default_return, **log_kwargs
        )

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    return recover(e)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                return recover(e)

        return wrapper

    return decorator


def safe_with_default(
    operation_name: str,
    default_value: Any,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    **log_kwargs: Any,
):
    """Return ``default_value`` (after logging) when the call fails."""
    return handle_errors(
        operation_name,
        default_return=default_value,
        exceptions=exceptions,
        **log_kwargs,
    )
