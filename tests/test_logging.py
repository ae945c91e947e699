"""Tests for logging setup and formatters."""

import json
import logging

from relplan.config import LoggingConfig
from relplan.utils.logging import (
    StructuredFormatter,
    get_contextual_logger,
    setup_logging,
    setup_logging_from_config,
)


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="relplan.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_structured_formatter_emits_json():
    """Structured records carry level, logger and message."""
    payload = json.loads(StructuredFormatter().format(_record("decoded plan")))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "relplan.test"
    assert payload["message"] == "decoded plan"
    assert "timestamp" in payload


def test_structured_formatter_includes_context():
    """Fields from a contextual logger are merged into the JSON."""
    record = _record("loaded", extra_fields={"plan_file": "plan.bin"})
    payload = json.loads(StructuredFormatter().format(record))

    assert payload["plan_file"] == "plan.bin"


def test_setup_logging_level():
    """The configured level is applied to the root logger."""
    setup_logging(level="DEBUG")

    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_from_config_structured(tmp_path):
    """Structured config installs the JSON formatter on every handler."""
    log_file = tmp_path / "relplan.log"
    setup_logging_from_config(
        LoggingConfig(level="INFO", structured=True, log_file=str(log_file))
    )

    handlers = logging.getLogger().handlers
    assert len(handlers) == 2
    for handler in handlers:
        assert isinstance(handler.formatter, StructuredFormatter)

    logging.getLogger("relplan.test").info("written")
    for handler in handlers:
        handler.flush()
    line = log_file.read_text().strip().splitlines()[-1]
    assert json.loads(line)["message"] == "written"
    for handler in handlers:
        handler.close()


def test_contextual_logger_attaches_fields(caplog):
    """Adapter passes its context through ``extra_fields``."""
    logger = get_contextual_logger("relplan.test", {"plan_file": "a.bin"})

    with caplog.at_level(logging.INFO, logger="relplan.test"):
        logger.info("hello")

    assert caplog.records[-1].extra_fields == {"plan_file": "a.bin"}
