"""
Logging configuration for FarmCast.

All modules log through loguru (`from loguru import logger`). This module
installs the sinks once at startup and redirects records emitted through the
standard `logging` module (uvicorn, SQLAlchemy, Celery, httpx) into loguru so
every line shares the same format.

Usage:
    from config.logging_config import get_logger, setup_logging

    setup_logging(log_level="INFO", log_dir="logs", json_logs=False)
    logger = get_logger()
"""

import logging
import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)

_configured = False


class InterceptHandler(logging.Handler):
    """Forwards stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    log_level: str = "INFO",
    log_dir: str | None = "logs",
    json_logs: bool = False,
) -> None:
    """
    Configure loguru sinks.

    Args:
        log_level: Minimum level for console and file sinks
        log_dir: Directory for the rotating file sink (None disables it)
        json_logs: Serialize records as JSON (for log shippers)
    """
    global _configured

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=CONSOLE_FORMAT,
        colorize=not json_logs,
        serialize=json_logs,
        backtrace=False,
        diagnose=False,
    )

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        logger.add(
            Path(log_dir) / "farmcast.log",
            level=log_level,
            rotation="10 MB",
            retention="14 days",
            compression="zip",
            serialize=json_logs,
            enqueue=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "celery"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    _configured = True
    logger.debug(
        f"Logging configured | level={log_level} | dir={log_dir} | "
        f"json={json_logs}"
    )


def get_logger():
    """Return the shared loguru logger, configuring defaults on first use."""
    if not _configured:
        setup_logging(log_dir=None)
    return logger
