"""Logging configuration for gitbar"""
import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_LOG_FILE = Path.home() / '.gitbar' / 'gitbar.log'


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels in terminal output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record):
        """Format log record with colors if in a terminal."""
        if sys.stderr.isatty():
            levelname = record.levelname
            if levelname in self.COLORS:
                record = logging.makeLogRecord(record.__dict__)
                record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    watch_mode: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and detailed formatting
        watch_mode: If True, log to file and keep the console quiet
            (the live table owns the terminal)
        log_file: Override for the log file location
    """
    # Determine log level
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    # In watch mode the file gets everything; handlers decide what is shown
    root_logger.setLevel(logging.DEBUG if watch_mode else level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if watch_mode or debug:
        target = log_file or DEFAULT_LOG_FILE
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target, mode='w')  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    if not watch_mode:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)

        if debug:
            formatter = ColoredFormatter(
                fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            formatter = ColoredFormatter(fmt='[%(name)s] %(message)s')

        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # watchdog is chatty at DEBUG about every inotify event
    logging.getLogger('watchdog').setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance
    """
    # Strip the package prefix for cleaner log names
    if name.startswith('gitbar.'):
        name = name.replace('gitbar.', '', 1)
    if name.startswith('services.'):
        name = name.replace('services.', '', 1)

    return logging.getLogger(name)
