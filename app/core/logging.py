import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.config import settings

REQUEST_LOG_FORMAT = "[%(asctime)s.%(msecs)03d] %(message)s"
APP_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure(name: str, handler: logging.Handler, fmt: str) -> logging.Logger:
    """Attach ``handler`` to the named logger once; repeated calls reuse it."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    if not logger.handlers:
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger


def setup_request_logger() -> logging.Logger:
    """
    Logger for the one-line-per-request access log.

    Writes to ``<LOG_DIR>/api_requests.log``, rotated by size.
    """
    logs_dir = Path(settings.LOG_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=logs_dir / "api_requests.log",
        maxBytes=settings.LOG_MAX_SIZE_MB * 1024 * 1024,
        backupCount=settings.LOG_MAX_FILES,
        encoding="utf-8",
    )
    return _configure("api_requests", handler, REQUEST_LOG_FORMAT)


def setup_app_logger() -> logging.Logger:
    """Logger for transaction events and server-side failures, written to stdout."""
    return _configure("app_errors", logging.StreamHandler(sys.stdout), APP_LOG_FORMAT)


api_logger = setup_request_logger()
app_logger = setup_app_logger()
