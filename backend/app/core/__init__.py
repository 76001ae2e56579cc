"""Core module for configuration, errors and logging."""
from app.core.config import get_settings, Settings
from app.core.logging import get_logger

__all__ = [
    "get_settings",
    "Settings",
    "get_logger",
]
