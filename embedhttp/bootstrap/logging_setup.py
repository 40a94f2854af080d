"""Logging setup: JSON or key=value lines, written to stdout or a rotating file."""

import json
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from embedhttp.domain.correlation_id import CorrelationLoggerAdapter

LOGGER_NAME = "embedhttp"
PLAIN_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(correlation_id)s] %(component)s: %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5
REDACTED = "[REDACTED]"

SENSITIVE_PATTERNS = (
    re.compile(
        r"(?i)(authorization|token|cookie|key|signature|password|secret|api[_-]?key)"
    ),
    # long hex or base64 runs are treated as credentials
    re.compile(r"\b[A-Fa-f0-9]{32,}\b"),
    re.compile(r"\b[A-Za-z0-9+/]{32,}={0,2}"),
)

# Attributes copied from ``extra`` into the output, in this order.
STRUCTURED_FIELDS = (
    "event",
    "connection_id",
    "socket",
    "listener",
    "host",
    "port",
    "method",
    "route",
    "status_code",
    "bytes_in",
    "bytes_out",
    "content_length",
    "content_type",
    "field",
    "removed",
    "remaining",
    "error_type",
    "log_destination",
    "log_level",
    "use_json",
    "poll_interval_ms",
    "signal",
)


def redact_sensitive(value: Optional[str]) -> Optional[str]:
    """Replace a value that names or looks like a credential."""
    if not value:
        return value
    if any(pattern.search(value) for pattern in SENSITIVE_PATTERNS):
        return REDACTED
    return value


def structured_fields(record: logging.LogRecord) -> Iterator[tuple[str, Any]]:
    """Yield the ``extra`` fields present on ``record`` with strings redacted.

    ``event`` names are fixed identifiers chosen by the code and pass through
    untouched.
    """
    for key in STRUCTURED_FIELDS:
        if not hasattr(record, key):
            continue
        value = getattr(record, key)
        if key != "event" and isinstance(value, str):
            value = redact_sensitive(value)
        yield key, value


class CorrelationIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Fill in the placeholders both formatters rely on."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        if not hasattr(record, "component"):
            record.component = record.name
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line with sorted keys."""

    def __init__(self, datefmt: Optional[str] = None):
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "component": getattr(record, "component", "unknown"),
            "message": record.getMessage(),
        }
        log_data.update(structured_fields(record))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, sort_keys=True, default=str)


class KeyValueFormatter(logging.Formatter):
    """Human-readable line followed by ``key=value`` pairs for the extras."""

    def __init__(self, datefmt: Optional[str] = None):
        super().__init__(PLAIN_FORMAT, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(f"{key}={value}" for key, value in structured_fields(record))
        if not pairs:
            return line
        head, newline, trace = line.partition("\n")
        return f"{head} {pairs}{newline}{trace}"


def _resolve_level(level: Union[str, int]) -> int:
    """Translate a level name or number into a logging level, INFO if unknown."""
    if isinstance(level, int):
        return level
    resolved = getattr(logging, str(level).upper(), None)
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_handler(
    destination: Optional[str], level: int, use_json: bool = True
) -> logging.Handler:
    """Create a stdout or rotating file handler with the chosen formatter."""
    if destination and destination.lower() != "stdout":
        target_path = Path(destination)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            target_path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT
        )
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter = JsonFormatter if use_json else KeyValueFormatter
    handler.setFormatter(formatter(DATE_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    return handler


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    level: Union[str, int] = "INFO",
    destination: Optional[str] = None,
    use_json: bool = True,
) -> CorrelationLoggerAdapter:
    """Install a single handler on the ``embedhttp`` logger and return an adapter.

    Calling it again replaces the previous handler, so the level or destination
    can be changed at runtime.
    """
    logger = logging.getLogger(LOGGER_NAME)
    numeric_level = _resolve_level(level)
    logger.setLevel(numeric_level)
    logger.propagate = False
    _reset_handlers(logger)
    logger.addHandler(_build_handler(destination, numeric_level, use_json))

    adapter = CorrelationLoggerAdapter(logger, {})
    adapter.info(
        "Logging configured",
        extra={
            "event": "logging_configured",
            "log_level": logging.getLevelName(numeric_level),
            "log_destination": destination or "stdout",
            "use_json": use_json,
        },
    )
    return adapter
