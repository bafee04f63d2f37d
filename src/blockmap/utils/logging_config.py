"""
Logging configuration for blockmap.
"""

import logging
import logging.handlers
from typing import Optional

from ..settings import AppSettings

CONSOLE_FORMAT = "%(asctime)s : %(levelname)-8s : %(message)s"


class ColoredFormatter(logging.Formatter):
    """Console formatter coloring the level name."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        formatted = super().format(record)

        # only the level name is colored, the message stays plain
        if record.levelname in formatted:
            formatted = formatted.replace(record.levelname, f"{color}{record.levelname}{reset}", 1)

        return formatted


class CSVFormatter(logging.Formatter):
    """Semicolon separated, CSV-safe formatter for the log file."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        level = record.levelname.ljust(8)
        duration = f"{int(record.relativeCreated)} ms"
        module = record.name
        thread = record.threadName
        line_no = str(record.lineno)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        message = message.replace('"', '""')

        return f'"{timestamp}";{level};"{duration}";"{module}";"{thread}";"{line_no}";"{message}"'


def setup_logging(settings: AppSettings, console_level: Optional[str] = None) -> None:
    """
    Setup logging with a console handler and an optional rotating file handler.

    Args:
        settings: AppSettings instance for all logging configuration
        console_level: Overrides the configured console level (e.g. from --verbose)
    """
    console_enabled = settings.console_logging
    console_level = (console_level or settings.console_log_level).upper()
    use_colors = settings.console_use_colors
    file_enabled = settings.file_logging
    log_path = settings.logging.log_file_absolute_path

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    logging.getLogger("blockmap").setLevel(logging.DEBUG)

    # repeated setup must not stack handlers or leak log files
    for handler in root_logger.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.close()
    root_logger.handlers.clear()

    if console_enabled:
        if use_colors:
            console_formatter: logging.Formatter = ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt="%H:%M:%S")
        else:
            console_formatter = logging.Formatter(fmt=CONSOLE_FORMAT, datefmt="%H:%M:%S")

        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level, logging.INFO))
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    file_ready = False
    if file_enabled:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(CSVFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
            root_logger.addHandler(file_handler)
            file_ready = True
        except OSError as e:
            # console logging still works
            root_logger.warning(f"Could not setup file logging: {e}")

    # Pillow logs every chunk of every PNG at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)
    logging.getLogger("PIL.PngImagePlugin").setLevel(logging.INFO)
    logging.getLogger("PIL.JpegImagePlugin").setLevel(logging.INFO)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized")
    if console_enabled:
        logger.debug(f"Console logging: {console_level} (colors: {use_colors})")
    if file_ready:
        logger.debug(f"File logging: DEBUG at {log_path}")
