"""
Render defaults for blockmap. Command line options override them.
"""

import logging
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

DISPATCHERS = ["multi", "single"]


class RenderSettings:
    """Manages render-related settings."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_int(self, key: str, default: int = 0) -> int:
        """Type-safe integer retrieval from settings."""
        value = self.settings.value(key, default)
        try:
            return int(str(value)) if value is not None else default
        except (ValueError, TypeError):
            return default

    @property
    def thread_count(self) -> int:
        """Worker threads; 0 means one per CPU."""
        return self._get_int("render/thread_count", 0)

    @thread_count.setter
    def thread_count(self, value: int) -> None:
        if value >= 0:
            self.settings.setValue("render/thread_count", value)
            self.settings.sync()
        else:
            logger.warning(f"Invalid thread count: {value}, keeping current: {self.thread_count}")

    @property
    def effective_thread_count(self) -> int:
        return self.thread_count or os.cpu_count() or 1

    @property
    def dispatcher(self) -> str:
        """Default dispatch strategy: "multi" or "single"."""
        value = str(self.settings.value("render/dispatcher", "multi"))
        return value if value in DISPATCHERS else "multi"

    @dispatcher.setter
    def dispatcher(self, value: str) -> None:
        if value in DISPATCHERS:
            self.settings.setValue("render/dispatcher", value)
            self.settings.sync()
        else:
            raise ValueError(f"Invalid dispatcher: {value}")

    @property
    def progress_step(self) -> int:
        """Percentage step between progress log lines."""
        return self._get_int("render/progress_step", 10)

    @progress_step.setter
    def progress_step(self, value: int) -> None:
        if 1 <= value <= 100:
            self.settings.setValue("render/progress_step", value)
            self.settings.sync()
        else:
            logger.warning(f"Invalid progress step: {value}, keeping current: {self.progress_step}")
