"""
Settings package for blockmap.

Persistent user preferences (logging, render defaults) stored with Qt's
QSettings for cross-platform storage.

Usage:
    from blockmap.settings import AppSettings, ValidationResult

    settings = AppSettings()
    result = settings.validate()
"""

from .core import AppSettings
from .types import ConfigError, ValidationResult
from .logging import LoggingSettings
from .render import RenderSettings

__all__ = [
    "AppSettings",
    "ConfigError",
    "ValidationResult",
    "LoggingSettings",
    "RenderSettings",
]
