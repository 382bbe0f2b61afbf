"""
Logging utilities for the avalanche report service.
"""

import logging
import sys
import traceback
from collections.abc import Callable
from functools import wraps
from time import monotonic
from typing import Any
from typing import TypeVar

from typing_extensions import ParamSpec


T = TypeVar('T')
P = ParamSpec('P')

def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)

def log_execution(level: str = 'DEBUG') -> Callable[
    [Callable[P, T]], Callable[P, T]
]:
    """Decorator to log function execution with timing."""
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            log_level = getattr(logging, level)
            start = monotonic()
            logger.log(log_level, "Calling %s", func.__name__)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "%s failed after %.3fs: %s", func.__name__, monotonic() - start, e
                )
                raise
            logger.log(log_level, "%s completed in %.3fs", func.__name__, monotonic() - start)
            return result

        return wrapper
    return decorator

class LoggerMixin:
    """Mixin class that provides logging with per-instance context."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__module__)
        self._log_context: dict[str, Any] = {}

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self._logger

    def set_log_context(self, **kwargs: Any) -> None:
        """Set context values for all subsequent log messages."""
        self._log_context.update(kwargs)

    def clear_log_context(self) -> None:
        """Clear all context values."""
        self._log_context.clear()

    def _format_message(self, msg: str, **kwargs: Any) -> str:
        context = {**self._log_context, **kwargs}
        if context:
            context_str = " | ".join(f"{k}={v}" for k, v in context.items())
            return f"{msg} | Context: {context_str}"
        return msg

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log a debug message with context."""
        self.logger.debug(self._format_message(msg, **kwargs))

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log an info message with context."""
        self.logger.info(self._format_message(msg, **kwargs))

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log a warning message with context."""
        self.logger.warning(self._format_message(msg, **kwargs))

    def error(self, msg: str, exc_info: Any = None, **kwargs: Any) -> None:
        """Log an error message with context and optional exception info."""
        if exc_info:
            if isinstance(exc_info, BaseException):
                kwargs['error'] = str(exc_info)
                kwargs['traceback'] = "".join(traceback.format_tb(exc_info.__traceback__))
            else:
                _, exc_value, exc_traceback = sys.exc_info()
                if exc_traceback:
                    kwargs['traceback'] = "".join(traceback.format_tb(exc_traceback))
                if exc_value:
                    kwargs['error'] = str(exc_value)
        self.logger.error(self._format_message(msg, **kwargs))
