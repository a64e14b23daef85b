"""Structured JSON logging for the service."""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime

from pythonjsonlogger import jsonlogger


class JsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that always emits an ISO-8601 `ts` and the level name."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("ts"):
            log_record["ts"] = datetime.now(UTC).isoformat(timespec="milliseconds")
        log_record["level"] = record.levelname


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Install the JSON handler on the root logger and the uvicorn loggers.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(log_level.upper())
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter("%(ts)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    return logger
