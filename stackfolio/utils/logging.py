"""Logging setup for stackfolio.

Console output goes to stdout. An optional rotating log file can be added,
written either as plain text or as one JSON object per line so that
rebalancing rejections and warnings can be analyzed later.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

# LogRecord attributes set by log_with_context
EVENT_ATTR = "event"
CONTEXT_ATTR = "context"


class JsonFormatter(logging.Formatter):
    """Render each record as a single-line JSON object.

    Fields passed to ``log_with_context`` are written as top-level keys next
    to ``timestamp``, ``level``, ``logger`` and ``event``.
    """

    def format(self, record: logging.LogRecord) -> str:
        context: Dict[str, Any] = getattr(record, CONTEXT_ATTR, None) or {}
        event = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, EVENT_ATTR, None) or record.getMessage(),
            **context,
        }
        if record.exc_info:
            event["exception"] = self.formatException(record.exc_info)
        return json.dumps(event, default=str)


def setup_logging(
    level: str = "INFO",
    log_format: Optional[str] = None,
    log_file: Optional[str | Path] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    json_file: bool = False,
) -> None:
    """Configure the root logger.

    Replaces any handlers installed earlier, so calling it twice is safe.

    Args:
        level: Logging level name; unknown names fall back to INFO
        log_format: Console format string (default: time - name - level - message)
        log_file: Also write to this file, rotated at ``max_bytes``
        max_bytes: Size at which the log file is rotated
        backup_count: Number of rotated files kept
        json_file: Write the log file as JSON lines instead of ``log_format``

    Example:
        >>> setup_logging(level="DEBUG", log_file="logs/stackfolio.log")
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    text_formatter = logging.Formatter(log_format or DEFAULT_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(text_formatter)
    handlers = [console]

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(JsonFormatter() if json_file else text_formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)


def setup_logging_from_config(config: Any) -> None:
    """Configure logging from the ``logging`` section of a configuration.

    Args:
        config: Config instance (or anything with a dot-notation ``get``)
    """
    setup_logging(
        level=config.get("logging.level", "INFO"),
        log_format=config.get("logging.format"),
        log_file=config.get("logging.file"),
        max_bytes=int(config.get("logging.max_bytes", DEFAULT_MAX_BYTES)),
        backup_count=int(config.get("logging.backup_count", DEFAULT_BACKUP_COUNT)),
        json_file=bool(config.get("logging.json", False)),
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any,
) -> None:
    """Log ``message`` with ``key=value`` fields.

    Text output reads ``"Allocation overcommitted | ticker=SSO requested=60.0"``.
    The fields also travel on the record, so ``JsonFormatter`` writes them as
    separate keys.

    Args:
        logger: Logger instance
        level: Level name (debug, info, warning, error, critical)
        message: Event description
        **context: Fields describing the event
    """
    if context:
        fields = " ".join(f"{key}={value}" for key, value in context.items())
        text = f"{message} | {fields}"
    else:
        text = message

    log_func = getattr(logger, level.lower())
    log_func(text, extra={EVENT_ATTR: message, CONTEXT_ATTR: context})
