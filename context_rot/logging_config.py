"""Logging setup for hosts embedding the context engine.

The engine itself only calls ``logging.getLogger(__name__)``. Hosts that want
its records on a stream call setup_logging(); it attaches one handler to the
engine's package loggers and leaves the root logger alone, so a tool server
speaking a protocol over stdout keeps that stream clean.
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Generator, Optional, TextIO

SIMPLE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Checked in order; the first one set wins
LOG_LEVEL_ENVS = ("CONTEXT_ROT_LOG_LEVEL", "LOG_LEVEL")
DEFAULT_LOG_LEVEL = "WARNING"

PACKAGE_LOGGERS = ("context_rot", "context_config")

_HANDLER_MARK = "_context_rot_handler"


def resolve_level(level: Optional[str] = None) -> int:
    """Map a level name (or the environment) to a logging level, WARNING if unknown."""
    if level is None:
        level = next((os.environ[name] for name in LOG_LEVEL_ENVS if os.environ.get(name)), DEFAULT_LOG_LEVEL)
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.WARNING


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """Send engine log records to stream (stderr by default).

    Calling it again replaces the previous handler instead of stacking a
    second one.

    Args:
        level: Level name. Falls back to CONTEXT_ROT_LOG_LEVEL, LOG_LEVEL, then WARNING.
        stream: Destination stream.
    """
    log_level = resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        logging.Formatter(DEBUG_FORMAT if log_level <= logging.DEBUG else SIMPLE_FORMAT, DATE_FORMAT)
    )
    setattr(handler, _HANDLER_MARK, True)

    for name in PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        for existing in [h for h in logger.handlers if getattr(h, _HANDLER_MARK, False)]:
            logger.removeHandler(existing)
        logger.addHandler(handler)
        logger.setLevel(log_level)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    slow_ms: Optional[float] = None,
) -> Generator[None, None, None]:
    """Log how long the block took, at WARNING when it ran past slow_ms.

    Example:
        with log_timing(logger, "Compaction pass (selective)", slow_ms=500):
            engine.compact(options)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        if slow_ms is not None and duration_ms > slow_ms:
            logger.warning("%s was slow: %.1fms (limit %.0fms)", operation, duration_ms, slow_ms)
        else:
            logger.log(level, "%s completed in %.1fms", operation, duration_ms)
