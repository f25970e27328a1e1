"""
Logging configuration for the Memora ingestion service.

JSON lines in production, a compact human-readable format in development.
Both include the correlation ID of the request or background task that
emitted the record.

Usage:
    from app.shared.logging_config import setup_logging

    setup_logging(service_name="memora-ingestion-service")

    logger = logging.getLogger("Memora.Knowledge.Indexer")
    logger.info("Indexed source", extra={"source_id": 42, "fragments": 3})

Output format (JSON, one line per record):
    {"timestamp": "...", "level": "INFO", "logger": "Memora.Knowledge.Indexer",
     "message": "Indexed source", "service": "memora-ingestion-service",
     "correlation_id": "a1b2c3d4", "source_id": 42, "fragments": 3}
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from app.shared.correlation import get_correlation_id


# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
})


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the active correlation ID ("-" when there is none)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extra fields merged at the top level."""

    def __init__(self, service_name: str = "memora"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            entry["correlation_id"] = correlation_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                entry[key] = value
            except (TypeError, ValueError):
                entry[key] = str(value)

        return json.dumps(entry)


class HumanReadableFormatter(logging.Formatter):
    """`time [LEVEL] [cid] logger: message | k=v` for local development."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", "-")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        extras = ", ".join(f"{k}={v}" for k, v in _extra_fields(record).items())
        line = f"{timestamp} [{record.levelname}] [{correlation_id}] {record.name}: {record.getMessage()}"
        if extras:
            line += f" | {extras}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    service_name: str,
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        service_name: Name stamped on every JSON record
        level: Log level name; defaults to LOG_LEVEL or INFO
        json_output: Force JSON on/off; defaults to JSON unless ENVIRONMENT=development
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level, logging.INFO)

    environment = os.getenv("ENVIRONMENT", "production").lower()
    if json_output is None:
        json_output = environment != "development"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter(service_name=service_name) if json_output else HumanReadableFormatter())
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Third-party clients log every request at INFO
    for noisy in ("httpx", "httpcore", "openai", "qdrant_client", "hpack", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(f"{service_name}.startup").info(
        "Logging configured",
        extra={"log_level": level, "json_output": json_output, "environment": environment},
    )
