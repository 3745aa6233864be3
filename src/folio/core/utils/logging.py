"""
Logging configuration using loguru.

folio itself logs through loguru directly. APScheduler and httpx log
through the standard library, so ``setup_logging`` also routes the
stdlib root logger into loguru to keep one output stream.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

# Third-party loggers that are chatty at INFO (every job run, every request).
_NOISY_LOGGERS = ("apscheduler", "httpx", "httpcore")


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller.
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    fmt: str = "<level>[{level.name}]</level> {message}",
    rotation: str = "10 MB",
    retention: str = "7 days",
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure loguru sinks and capture stdlib logging.

    Args:
        level: Minimum log level for folio messages (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, only logs to stderr.
        fmt: Loguru format string for the stderr sink.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
        third_party_level: Floor applied to APScheduler/httpx stdlib loggers.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=fmt)

    if log_file:
        logger.add(
            log_file,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message}",
            rotation=rotation,
            retention=retention,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level.upper())
