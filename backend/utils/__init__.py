"""
PrismWatch Utilities Package.

Configuration, logging and parsing helpers shared by all modules.
Requires Python 3.11+.
"""

from utils.config import Settings, get_settings
from utils.durations import parse_duration
from utils.logger import configure_logging, get_logger, LoggerMixin

__all__ = [
    "Settings",
    "get_settings",
    "parse_duration",
    "configure_logging",
    "get_logger",
    "LoggerMixin",
]
