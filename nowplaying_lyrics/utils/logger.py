"""
Logging configuration and utilities for nowplaying-lyrics

The watcher prints display lines on stdout, so the console log handler writes to
stderr and only lets through what the user should see: warnings, errors and
records logged with ``console_info``. Everything else (per-tick player reports,
provider requests, timings) goes to the optional rotating log file.
"""

import functools
import inspect
import logging
import logging.handlers
import re
import sys
import time
from pathlib import Path
from typing import Optional, Union

import colorama
from colorama import Fore, Style

from ..config.settings import get_settings


colorama.init()

# Attribute set on handlers installed here so a reconfigure only replaces ours
HANDLER_MARKER = '_nowplaying_lyrics_handler'

# Record attribute that routes an INFO message to the console
CONSOLE_FLAG = 'console_output'

# Libraries that log every request or task switch
NOISY_LOGGERS = ('aiohttp', 'asyncio')

FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s | %(message)s'

LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}

SIZE_UNITS = {'': 1, 'K': 1024, 'M': 1024 ** 2, 'G': 1024 ** 3}


class UserFacingFilter(logging.Filter):
    """Pass warnings and above, plus records explicitly flagged for the console"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING or getattr(record, CONSOLE_FLAG, False)


class ConsoleFormatter(logging.Formatter):
    """Message-only formatter; warnings and errors get a colored level prefix"""

    def __init__(self, use_colors: bool = True):
        super().__init__('%(message)s')
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            message = f"{record.levelname.title()}: {message}"
        if not self.use_colors:
            return message
        color = LEVEL_COLORS.get(record.levelno, '')
        return f"{color}{message}{Style.RESET_ALL}"


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, HANDLER_MARKER, True)
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    colored_output: bool = True,
    max_size: str = "10MB",
    backup_count: int = 3
) -> None:
    """
    Install the console and file handlers on the root logger

    Calling this again replaces the handlers installed by a previous call and
    leaves any other handlers (for example pytest's capture handler) in place.

    Args:
        level: Level of the file handler
        log_file: Path of the rotating log file, None disables file logging
        console_output: Install the stderr handler for user-facing messages
        colored_output: Colorize console messages
        max_size: Size at which the log file rotates, e.g. "10MB"
        backup_count: Number of rotated files to keep
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for handler in [h for h in root.handlers if getattr(h, HANDLER_MARKER, False)]:
        root.removeHandler(handler)
        handler.close()

    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.addFilter(UserFacingFilter())
        console.setFormatter(ConsoleFormatter(use_colors=colored_output))
        root.addHandler(_mark(console))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        rotating.setLevel(getattr(logging, level.upper(), logging.INFO))
        rotating.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root.addHandler(_mark(rotating))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging ready (level={level}, file={log_file or 'none'})")


def get_current_log_file() -> Optional[Path]:
    """Path of the active rotating log file, if file logging is enabled"""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            return Path(handler.baseFilename)
    return None


def parse_size(size_str: str) -> int:
    """
    Parse a human size such as "10MB", "500 kb" or "1.5G" into bytes

    Raises:
        ValueError: If the string is not a recognised size
    """
    match = re.fullmatch(r'(\d+(?:\.\d+)?)\s*([KMG]?)B?', size_str.strip().upper())
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")
    number, unit = match.groups()
    return int(float(number) * SIZE_UNITS[unit])


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for a module

    The returned logger carries ``console_info``, ``console_warning`` and
    ``console_error`` helpers for messages meant for the user.

    Args:
        name: Logger name (typically __name__)
    """
    logger = logging.getLogger(name)
    if not hasattr(logger, 'console_info'):
        logger.console_info = functools.partial(logger.info, extra={CONSOLE_FLAG: True})
        logger.console_warning = logger.warning
        logger.console_error = logger.error
    return logger


def resolve_log_path(file_setting: str, config_directory: Path) -> Optional[Path]:
    """Relative log file settings are placed inside the config directory"""
    if not file_setting:
        return None
    path = Path(file_setting).expanduser()
    return path if path.is_absolute() else config_directory / path


def configure_from_settings() -> None:
    """Configure logging from application settings"""
    settings = get_settings()
    log_path = resolve_log_path(settings.logging.file, settings.get_config_directory())

    setup_logging(
        level=settings.logging.level,
        log_file=str(log_path) if log_path else None,
        console_output=settings.logging.console_output,
        colored_output=settings.logging.colored_output,
        max_size=settings.logging.max_size,
        backup_count=settings.logging.backup_count
    )


def _log_timing(func, started: float, error: Union[Exception, None] = None) -> None:
    elapsed = time.monotonic() - started
    logger = logging.getLogger(func.__module__)
    if error is None:
        logger.debug(f"{func.__qualname__} completed in {elapsed:.3f}s")
    else:
        logger.debug(f"{func.__qualname__} failed after {elapsed:.3f}s: {error}")


def log_performance(func):
    """Decorator logging how long a call took (file only); supports coroutines"""

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            started = time.monotonic()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_timing(func, started, e)
                raise
            _log_timing(func, started)
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_timing(func, started, e)
            raise
        _log_timing(func, started)
        return result

    return wrapper
