import functools
import logging
import os
import time
from typing import Any, Callable, TypeVar

# Default to CRITICAL (effectively off) unless explicitly set for debug
LOG_LEVEL = os.getenv("SIR_GRID_LOG_LEVEL", "CRITICAL").upper()
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.CRITICAL))

F = TypeVar("F", bound=Callable[..., Any])

_MAX_REPR = 60


def _summarize(value: Any) -> str:
    """Short description of a value that never dumps whole grids or arrays."""
    shape = getattr(value, "shape", None)
    if shape is not None:
        return f"<{type(value).__name__} shape={tuple(shape)}>"
    if isinstance(value, (list, tuple)) and len(value) > 8:
        return f"<{type(value).__name__} len={len(value)}>"
    text = repr(value)
    if len(text) > _MAX_REPR:
        return text[:_MAX_REPR - 3] + "..."
    return text


def log_call(func: F) -> F:
    """Decorator that logs function entry, exit and runtime at DEBUG level."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = logging.getLogger(func.__module__)
        log_debug = logger.isEnabledFor(logging.DEBUG)
        if log_debug:
            logger.debug("Entering %s", func.__qualname__)
            logger.debug(
                "args=%s kwargs=%s",
                [_summarize(a) for a in args],
                {k: _summarize(v) for k, v in kwargs.items()},
            )
        start = time.perf_counter()
        result = func(*args, **kwargs)
        runtime_ms = (time.perf_counter() - start) * 1000.0
        if log_debug:
            logger.debug("return=%s", _summarize(result))
            logger.debug("Exiting %s (%.2fms)", func.__qualname__, runtime_ms)
        return result

    return wrapper  # type: ignore[return-value]
