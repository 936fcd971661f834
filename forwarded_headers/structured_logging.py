"""
Logging setup for applications using the Forwarded middleware.

The library only emits records on the ``forwarded.*`` loggers. Applications
call :func:`setup_logging` to get either plain text or JSON lines
(FORWARDED_LOG_FORMAT=json) for easier log ingestion.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

# LogRecord attributes that are not user supplied extras
_RECORD_FIELDS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Each record becomes one JSON object with ``timestamp``, ``level``,
    ``logger`` and ``message``, plus ``file``, ``function``, ``exception``
    when available and any ``extra={...}`` fields passed to the logger.
    """

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        timestamp = dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z"

        log_entry: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.pathname:
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        if record.funcName and record.funcName != "<module>":
            log_entry["function"] = record.funcName

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def is_json_logging_enabled() -> bool:
    """True if FORWARDED_LOG_FORMAT=json."""
    return os.getenv("FORWARDED_LOG_FORMAT", "text").lower() == "json"


def setup_logging(level: str | None = None, log_file: str | None = None, force: bool = True) -> None:
    """
    Configure the root logger from arguments or environment variables.

    Environment variables:
    - FORWARDED_LOG_FORMAT: "json" or "text" (default: text)
    - FORWARDED_LOG_LEVEL: Log level (default: INFO)
    - FORWARDED_LOG_FILE: Optional log file path

    Args:
        level: Override log level (uses FORWARDED_LOG_LEVEL if None)
        log_file: Override log file (uses FORWARDED_LOG_FILE if None)
        force: Force reconfiguration of root logger
    """
    if level is None:
        level = os.getenv("FORWARDED_LOG_LEVEL", "INFO")

    if log_file is None:
        log_file = os.getenv("FORWARDED_LOG_FILE")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            print(f"Warning: Could not open log file {log_file}: {e}", file=sys.stderr)

    if is_json_logging_enabled():
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=force)
