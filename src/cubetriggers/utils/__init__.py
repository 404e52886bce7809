"""Utility exports for the cubetriggers package."""

from .logger import Logger, funclogger, get_logger
from .now import Now

__all__ = [
    "Logger",
    "Now",
    "funclogger",
    "get_logger",
]
