"""Progress reporting for render passes."""

import logging
import time


class ProgressHandler:
    """Receives progress of a render pass. All methods default to no-ops.

    ``set_value`` may be called from worker threads.
    """

    def set_max(self, total: int) -> None:
        pass

    def set_value(self, done: int) -> None:
        pass

    def level_finished(self, level: int) -> None:
        pass


class LoggingProgressHandler(ProgressHandler):
    """Logs "N of M tiles" every ``step`` percent and at level barriers."""

    def __init__(self, step: int = 10, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.step = max(1, step)
        self.total = 0
        self._next_percent = 0
        self._started = time.monotonic()

    def set_max(self, total: int) -> None:
        self.total = total
        self._next_percent = self.step
        self._started = time.monotonic()
        self.logger.info(f"Rendering {total} tiles")

    def set_value(self, done: int) -> None:
        if not self.total:
            return
        percent = done * 100 // self.total
        if percent >= self._next_percent:
            elapsed = time.monotonic() - self._started
            self.logger.info(f"{done} of {self.total} tiles ({percent}%) after {elapsed:.1f}s")
            self._next_percent = (percent // self.step + 1) * self.step

    def level_finished(self, level: int) -> None:
        self.logger.debug(f"Zoom level {level} finished")
