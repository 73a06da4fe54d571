"""structview logging utilities."""

import sys
import warnings
from pathlib import Path

from loguru import logger

from .settings import get_settings

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>{level}: {message}</level>"


def setup_logging(logfile: Path | None = None, debug: bool | None = None):
    """Sets up logging configuration.

    Logs go to stderr and, if `logfile` is given, to that file as well.
    When `debug` is None, the `debug` setting decides the level.
    """
    if debug is None:
        debug = get_settings().debug
    level = "DEBUG" if debug else "INFO"

    logger.remove()

    # Screen logger.
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=True)

    # File logger
    if logfile is not None:
        logger.add(logfile, level=level, format=LOG_FORMAT, colorize=False, mode="w")

    # Sets up loguru to capture warnings.
    def showwarning(message, *args, **kwargs):
        logger.opt(depth=2).warning(message)

    warnings.showwarning = showwarning


def get_logging_level() -> list[str]:
    """Returns the list of logging level names (one value per handler)."""
    core_logger = logger._core
    level_dict = {level.no: level.name for level in core_logger.levels.values()}
    return [level_dict[h.levelno] for h in core_logger.handlers.values()]


def is_logging_debug() -> bool:
    """Returns True if at least one logging handler is set to level DEBUG."""
    return "DEBUG" in get_logging_level()
