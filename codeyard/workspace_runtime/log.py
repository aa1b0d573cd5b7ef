"""Logging configuration using loguru.

Stdlib loggers (uvicorn, paramiko, GitPython) are bridged into loguru so
every line shares one format and one set of sinks: stderr, plus an optional
rotating file.

Tracebacks are rendered without loguru's variable annotations
(``diagnose=False``): frames in the sandbox layer hold passwords and key
text, and an annotated traceback would print them.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

QUIET_LOGGERS = ("uvicorn.access", "paramiko.transport", "git.cmd")
"""Chatty per-request / per-packet / per-command loggers, capped at WARNING."""


class _InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru, attributed to the original caller."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: str = "INFO",
    *,
    log_file: str | None = None,
    rotation: str = "20 MB",
    retention: int = 5,
) -> None:
    """Install the loguru sinks and the stdlib bridge.  Call once per process.

    ``log_file`` adds a size-rotated file sink keeping ``retention`` old files;
    its writes go through a queue so several worker processes can share it.
    """
    level = level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, diagnose=False)
    if log_file:
        logger.add(
            log_file,
            level=level,
            format=LOG_FORMAT,
            rotation=rotation,
            retention=retention,
            enqueue=True,
            colorize=False,
            diagnose=False,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging initialised (level={}, file={})", level, log_file or "-")
