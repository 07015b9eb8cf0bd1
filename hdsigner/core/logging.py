"""
Logger factory for hdsigner modules.

Each module calls get_logger(__name__) once at import. The level comes from the explicit argument, then the
HDSIGNER_LOG_LEVEL environment variable, then WARNING. Messages describe events (paths, indices, counts, hashes) and
never carry key material.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

__all__ = ["get_logger", "resolve_log_level", "LOG_LEVEL_ENV", "LOG_FORMAT"]

LOG_LEVEL_ENV = "HDSIGNER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = logging.WARNING
LOG_FORMAT = '%(asctime)s [%(name)s] [%(levelname)s]: %(message)s'


def resolve_log_level(log_level: Optional[str | int] = None) -> int:
    """
    Map a level name or number to a logging level. Unknown names fall back to WARNING.
    """
    if log_level is None:
        log_level = os.environ.get(LOG_LEVEL_ENV)
    if log_level is None:
        return DEFAULT_LOG_LEVEL
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(log_level.strip().upper())
    return level if isinstance(level, int) else DEFAULT_LOG_LEVEL


def get_logger(name: str, log_level: Optional[str | int] = None, log_file: Optional[Path] = None,
               format_string: Optional[str] = None) -> logging.Logger:
    """
    Args:
        name: Logger name, normally __name__
        log_level: Level name or number; see resolve_log_level
        log_file: Also write records to this file, creating parent directories
        format_string: Replaces LOG_FORMAT

    A logger that already has handlers is returned unchanged.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(resolve_log_level(log_level))
    formatter = logging.Formatter(format_string or LOG_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(stream=sys.stdout)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
