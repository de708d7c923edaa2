"""Timing decorator and scoped logging context."""

import functools
import inspect
import logging
import time
from collections.abc import Callable
from contextvars import Token
from typing import Any, ParamSpec, Self, TypeVar, overload

from src.commons.telemetry.logger import get_logger, log_context_var

P = ParamSpec("P")
R = TypeVar("R")


@overload
def timed(
    func: Callable[P, R],
) -> Callable[P, R]: ...


@overload
def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def timed(
    func: Callable[P, R] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Log how long the wrapped call took, sync or async.

    Args:
        func: The function to decorate (when used without parentheses).
        logger: Optional logger instance. Defaults to the function's module logger.
        level: Log level for timing messages.
        threshold_ms: Only log if execution exceeds this many milliseconds.

    Returns:
        Decorated function.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def report(start: float, failed: bool) -> None:
            elapsed_ms = (time.perf_counter() - start) * 1000
            if threshold_ms is None or elapsed_ms >= threshold_ms:
                log.log(
                    level,
                    f"{fn.__qualname__} {'failed' if failed else 'completed'}",
                    extra={"duration_ms": round(elapsed_ms, 2)},
                )

        @functools.wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            failed = True
            try:
                result = fn(*args, **kwargs)
                failed = False
                return result
            finally:
                report(start, failed)

        @functools.wraps(fn)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            failed = True
            try:
                result = await fn(*args, **kwargs)  # type: ignore[misc]
                failed = False
                return result  # type: ignore[no-any-return]
            finally:
                report(start, failed)

        if inspect.iscoroutinefunction(fn):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    if func is not None:
        return decorator(func)
    return decorator


class LogContext:
    """Bind logging context fields for the duration of a ``with`` block.

    Example:
        with LogContext(video_id="abc", message_id="m-1"):
            logger.info("Handling message")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._token: Token[dict[str, Any]] | None = None

    def __enter__(self) -> Self:
        current = log_context_var.get({})
        self._token = log_context_var.set({**current, **self.context})
        return self

    def bind(self, **kwargs: Any) -> None:
        """Add more fields while the block is active."""
        self.context.update(kwargs)
        log_context_var.set({**log_context_var.get({}), **kwargs})

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            log_context_var.reset(self._token)
            self._token = None
