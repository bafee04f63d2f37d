"""
Configuration files: the extended INI format and render configurations.
"""

from .extended_ini import ConfigFile, ConfigParseError, ConfigSection, ParseErrorKind
from .render_config import MapConfig, RenderConfig, WorldConfig

__all__ = [
    "ConfigFile",
    "ConfigParseError",
    "ConfigSection",
    "ParseErrorKind",
    "MapConfig",
    "RenderConfig",
    "WorldConfig",
]
