"""
Logging setup for the simulation and its CLI.

Frame timing and buffer lifecycle messages go to the ``heat_simulation``
logger. numba's own logger is held at WARNING unless DEBUG output is asked for,
since kernel compilation is otherwise very chatty.
"""
import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "heat_simulation"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level}")
    return resolved


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route package logs to stdout and, optionally, a file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: a ``logging`` level number or its name ("DEBUG", "info", ...).
        log_file: also write the same records to this path, overwriting it.

    Returns:
        The configured package logger.
    """
    level = _resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logging.getLogger("numba").setLevel(level if level <= logging.DEBUG else logging.WARNING)
    return logger
