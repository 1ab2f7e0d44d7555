"""Tests for logging setup."""

import json
import logging

from sms_parser_core.log import JSONFormatter, configure_logging


def test_json_formatter():
    record = logging.LogRecord("sms_parser_core.scanner", logging.INFO, __file__, 1,
                               "Parsed %d transactions", (3,), None)
    data = json.loads(JSONFormatter().format(record))
    assert data["level"] == "INFO"
    assert data["logger"] == "sms_parser_core.scanner"
    assert data["message"] == "Parsed 3 transactions"
    assert "timestamp" in data


def test_configure_logging_sets_package_logger():
    configure_logging("debug", json_format=True)
    logger = logging.getLogger("sms_parser_core")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    configure_logging("INFO")
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
