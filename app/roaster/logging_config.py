"""
Logging configuration for the roaster.

Console (and optional file) logging for all services. Every record carries
the roast stage of the request that emitted it, so interleaved requests can
be told apart in the log:

    2026-01-01 12:00:00 - roaster.spotify_client - WARNING - [fetching-upstream] ...

Records logged outside a roast request show "-" as their stage.
"""

import logging
import os
import sys
from contextvars import ContextVar
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(stage)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("apscheduler", "urllib3", "spotipy", "httpx", "openai")

_current_stage: ContextVar[str] = ContextVar("roast_stage", default="-")


def set_stage(stage: str) -> None:
    """Tag subsequent log records from this request context with `stage`."""
    _current_stage.set(stage)


def current_stage() -> str:
    return _current_stage.get()


class StageFilter(logging.Filter):
    """Adds the current roast stage to each record as `record.stage`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "stage"):
            record.stage = current_stage()
        return True


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(StageFilter())
    return handler


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path. If None, logs only to console.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), log_level))

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        root_logger.addHandler(_handler(logging.FileHandler(log_file), log_level))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging configured: level={level}, file={log_file or 'console only'}")
