"""Core application modules and shared utilities."""

from .exceptions import DriveManagerError
from .logging import setup_logging, get_logger

__all__ = [
    "DriveManagerError",
    "setup_logging",
    "get_logger"
]
