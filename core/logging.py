"""
Logging configuration
"""

import json
import logging
import sys

from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Libraries whose INFO output drowns the per-entity ingestion lines
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "apscheduler", "uvicorn.access")


class ErrorContextFormatter(logging.Formatter):
    """Append ``extra={"error_context": ...}`` to the line as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        error_context = getattr(record, "error_context", None)
        if error_context:
            line += f" | {json.dumps(error_context, default=str, sort_keys=True)}"
        return line


def setup_logging():
    """Configure the root logger from LOG_LEVEL (stdout, one line per record)"""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ErrorContextFormatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    quiet_level = logging.INFO if settings.ENVIRONMENT == "debug" else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {settings.LOG_LEVEL} level")
