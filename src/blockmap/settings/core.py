"""
Core settings management for blockmap.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QSettings

from .types import ValidationResult
from .validation import SettingsValidator
from .logging import LoggingSettings
from .render import RenderSettings

logger = logging.getLogger(__name__)


class AppSettings:
    """
    Persistent user preferences using QSettings.

    Holds what does not belong into a render configuration file: logging
    preferences and render defaults. Stored in the platform's native
    settings store, or in an INI file when ``settings_file`` is given.
    """

    def __init__(self, profile: str = "default", settings_file: Optional[Union[str, Path]] = None):
        """Initialize settings for a profile.

        Args:
            profile: Settings profile name (default: "default")
            settings_file: Optional INI file to use instead of the native store
        """
        if settings_file is not None:
            self.settings = QSettings(str(settings_file), QSettings.Format.IniFormat)
        else:
            self.settings = QSettings("blockmap", "blockmap")
        self.profile = profile

        # Use profile as a group to create hierarchy: blockmap/<profile>/...
        self.settings.beginGroup(profile)

        self._validator = SettingsValidator(self)
        self._logging = LoggingSettings(self.settings)
        self._render = RenderSettings(self.settings)

        logger.debug(
            f"Settings initialized for profile '{profile}', stored at: {self.settings.fileName()}"
        )

    # === SUBSYSTEM ACCESS ===

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    @property
    def render(self) -> RenderSettings:
        """Access render settings subsystem."""
        return self._render

    # === LOGGING SETTINGS (DELEGATED) ===

    @property
    def console_logging(self) -> bool:
        return self._logging.console_logging

    @console_logging.setter
    def console_logging(self, value: bool) -> None:
        self._logging.console_logging = value

    @property
    def console_log_level(self) -> str:
        return self._logging.console_log_level

    @console_log_level.setter
    def console_log_level(self, value: str) -> None:
        self._logging.console_log_level = value

    @property
    def console_use_colors(self) -> bool:
        return self._logging.console_use_colors

    @console_use_colors.setter
    def console_use_colors(self, value: bool) -> None:
        self._logging.console_use_colors = value

    @property
    def file_logging(self) -> bool:
        return self._logging.file_logging

    @file_logging.setter
    def file_logging(self, value: bool) -> None:
        self._logging.file_logging = value

    @property
    def log_file_path(self) -> str:
        return self._logging.log_file_path

    # === HELPER METHODS ===

    def get_settings_file_path(self) -> str:
        """Get the settings file path or registry key."""
        return self.settings.fileName()

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        return self._validator.validate()

    def reset_to_defaults(self) -> None:
        """Reset all settings of this profile to defaults."""
        self.settings.remove("")
        self.settings.sync()
        logger.info(f"Settings profile '{self.profile}' reset to defaults")
