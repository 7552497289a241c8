"""
Configuration package.
"""

from .logging import configure_logging, get_logger
from .settings import Settings, settings

__all__ = [
    "settings",
    "Settings",
    # Logging
    "configure_logging",
    "get_logger",
]
