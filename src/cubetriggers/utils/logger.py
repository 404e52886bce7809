"""Logger configuration and convenience helpers."""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Sized
from functools import wraps

_DEFAULT_LOGGER_NAME = "cubetriggers"
_DEFAULT_LOG_LEVEL = logging.INFO
_DEFAULT_FORMATTER = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
_DEFAULT_HANDLER = logging.StreamHandler(sys.stdout)
_DEFAULT_HANDLER.setFormatter(_DEFAULT_FORMATTER)


def _configure_logger(logger: logging.Logger, level: int) -> None:
    """
    Configures a logger with the specified logging level and default handler.

    If the logger's level is not set, this function sets it to the provided level.
    It also ensures that a default handler is attached if no handlers are present,
    and disables propagation to ancestor loggers.

    Parameters
    ----------
    logger : logging.Logger
        The logger instance to configure.
    level : int
        The logging level to set if the logger's level is not already set.

    Returns
    -------
    None

    Examples
    --------
    >>> import logging
    >>> from cubetriggers.utils.logger import _configure_logger
    >>> logger = logging.getLogger("cubetriggers.jobs")
    >>> _configure_logger(logger, logging.INFO)
    >>> logger.info("Queued import job")
    """
    if logger.level == logging.NOTSET:
        logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(_DEFAULT_HANDLER)
    logger.propagate = False


def get_logger(name: str | None = None, level: int = _DEFAULT_LOG_LEVEL) -> logging.Logger:
    """Return a configured logger for the given name."""
    logger = logging.getLogger(name or _DEFAULT_LOGGER_NAME)
    _configure_logger(logger, level)
    return logger


def set_level(level: int, logger_names: list[str] | None = None) -> None:
    """Set the log level for one or more logger names."""
    names = logger_names or [_DEFAULT_LOGGER_NAME, "tenacity"]
    for name in names:
        logging.getLogger(name).setLevel(level)


class Logger(logging.Logger):
    """Custom Logger class for CubeTriggers."""

    def __init__(self, name: str = _DEFAULT_LOGGER_NAME, level: int = _DEFAULT_LOG_LEVEL) -> None:
        super().__init__(name, level)
        _configure_logger(self, level)


_MAX_ARG_REPR = 80


def _short_repr(value: object) -> str:
    text = repr(value)
    if len(text) <= _MAX_ARG_REPR:
        return text
    return f"{text[: _MAX_ARG_REPR - 3]}..."


def funclogger(func):
    """Decorator that logs calls at DEBUG.

    Argument reprs are cut to 80 characters; sized results are logged by length.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        function_name = func.__qualname__
        function_path = f"{func.__module__}.{function_name}".replace("<", "").replace(">", "")

        logger = get_logger(function_path)
        if not logger.isEnabledFor(logging.DEBUG):
            return func(*args, **kwargs)

        for i, arg in enumerate(args):
            logger.debug(" %s. %s (%s)", i, _short_repr(arg), type(arg).__name__)
        for key, value in kwargs.items():
            logger.debug(" - %s (%s): %s", key, type(value).__name__, _short_repr(value))

        logger.debug("Starting %s", function_name)
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed_time = time.perf_counter() - start_time
        if isinstance(result, Sized):
            logger.debug(
                "Finished %s in %.4f seconds (%s items)", function_name, elapsed_time, len(result)
            )
        else:
            logger.debug("Finished %s in %.4f seconds", function_name, elapsed_time)
        return result

    return wrapper
