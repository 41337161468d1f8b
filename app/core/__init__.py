"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from app.core.config import get_settings, Settings, EnvironmentMode, setup_logging
from app.core.errors import AppError

__all__ = ["get_settings", "Settings", "EnvironmentMode", "setup_logging", "AppError"]
