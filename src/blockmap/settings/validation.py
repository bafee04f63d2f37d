"""
Settings validation system for blockmap.
"""

import logging
from pathlib import Path
from typing import List, TYPE_CHECKING

from .logging import VALID_LEVELS
from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates stored settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        errors: List[str] = []
        warnings: List[str] = []

        if self.settings.console_log_level.upper() not in VALID_LEVELS:
            errors.append(f"Invalid console log level: {self.settings.console_log_level}")

        if self.settings.file_logging:
            log_dir = Path(self.settings.log_file_path).parent
            if log_dir.exists() and not log_dir.is_dir():
                errors.append(f"Log directory is not a directory: {log_dir}")

        if self.settings.render.thread_count < 0:
            errors.append(f"Invalid thread count: {self.settings.render.thread_count}")
        elif self.settings.render.thread_count > 4 * self.settings.render.effective_thread_count:
            warnings.append(f"Thread count {self.settings.render.thread_count} is unusually high")

        return ValidationResult(
            is_valid=len(errors) == 0, errors=errors, warnings=warnings
        )
