"""
Logging setup for blobfilestore.

Handlers are built from the ``logging`` section of the application
configuration. Every handler carries a redaction filter so storage
credentials never reach a log sink, including records from the Azure SDK,
which passes request details as %-style arguments.
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Union

if TYPE_CHECKING:  # pragma: no cover
    from .config_manager import LoggingConfig

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"

# Group 1 is kept, whatever follows it is replaced
_SECRET_PATTERNS = [
    re.compile(r"(AccountKey=)[^;\s]+", re.IGNORECASE),
    re.compile(r"(SharedAccessSignature=)[^;\s]+", re.IGNORECASE),
    re.compile(r"([?&]sig=)[^&\s'\"]+", re.IGNORECASE),
    re.compile(r"(Authorization['\"]?\s*[:=]\s*['\"]?)(?:Bearer\s+|SharedKey\s+)?[^'\",\s]+", re.IGNORECASE),
]

# The SDK logs every request and response header at INFO
DEFAULT_MODULE_LEVELS = {"azure": "WARNING"}

_SIZE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


def redact(text: str) -> str:
    """Mask account keys, SAS signatures and authorization headers in text."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
    return text


def parse_size(value: str) -> int:
    """Convert a size such as "10MB", "512KB" or "2048" into bytes."""
    match = _SIZE.match(value)
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit.upper() if unit else "B"])


class SensitiveDataFilter(logging.Filter):
    """
    Redacts credentials from the rendered message of a record.

    The message is rendered with its arguments first, so secrets passed as
    ``logger.info("%s", connection_string)`` are masked too. The record is
    left alone when its arguments don't fit the format string; the handler
    reports that itself when it formats the record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        record.msg = redact(message)
        record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging(config: "LoggingConfig") -> List[logging.Handler]:
    """
    Configure the root logger from the ``logging`` configuration section.

    Installs a stderr handler (stdout stays free for file content) and, when
    ``config.file`` is set, a size-rotated file handler. Handlers installed
    by an earlier call are closed and replaced.

    Args:
        config: Logging section of the application configuration

    Returns:
        The handlers attached to the root logger
    """
    formatter: logging.Formatter = JSONFormatter() if config.format == "json" else TextFormatter()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=config.file,
                maxBytes=parse_size(config.rotation_size),
                backupCount=config.rotation_count,
                encoding="utf-8",
            )
        )

    redactor = SensitiveDataFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redactor)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(_level(config.level))

    module_levels = {**DEFAULT_MODULE_LEVELS, **(config.module_levels or {})}
    for name, level in module_levels.items():
        logging.getLogger(name).setLevel(_level(level))

    logger.debug(
        f"Logging configured: level={_level_name(config.level)}, format={config.format}, "
        f"file={config.file or '-'}"
    )
    return handlers


def _level_name(level: Union[str, Any]) -> str:
    return str(getattr(level, "value", level)).upper()


def _level(level: Union[str, Any]) -> int:
    return getattr(logging, _level_name(level))
