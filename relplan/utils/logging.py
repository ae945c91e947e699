"""Logging setup for relplan tools.

Two output styles are supported: a human-readable line format and one JSON
object per record. Both write to stderr so that plan output on stdout can be
piped into other tools.
"""

import logging
import sys
import json
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

from ..config import LoggingConfig

_RECORD_FIELDS = ("module", "funcName", "lineno")


class StructuredFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: Dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _RECORD_FIELDS:
            log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Set by PlanLoggerAdapter, e.g. plan_file
        context = getattr(record, "extra_fields", None)
        if context:
            log_data.update(context)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Plain text formatter: time, logger, level, message."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def _build_handlers(
    formatter: logging.Formatter, level: int, log_file: Optional[str]
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
    return handlers


def setup_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger, replacing any handlers already installed.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        structured: Emit JSON records instead of text lines
        log_file: Also write records to this file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if structured:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = StandardFormatter()

    logging.basicConfig(
        level=log_level,
        handlers=_build_handlers(formatter, log_level, log_file),
        force=True,
    )


def setup_logging_from_config(config: LoggingConfig) -> None:
    """Set up logging from the ``logging`` section of a config file."""
    setup_logging(
        level=config.level,
        structured=config.structured,
        log_file=config.log_file,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class PlanLoggerAdapter(logging.LoggerAdapter):
    """Attach plan context (file name, variant, ...) to every record."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.setdefault("extra", {})
        extra["extra_fields"] = dict(self.extra)
        return msg, kwargs


def get_contextual_logger(name: str, context: Dict[str, Any]) -> PlanLoggerAdapter:
    """Get a logger that adds ``context`` to each record.

    Example:
        >>> logger = get_contextual_logger(__name__, {"plan_file": "plan.bin"})
        >>> logger.info("Plan decoded")  # JSON output includes plan_file
    """
    return PlanLoggerAdapter(get_logger(name), context)
