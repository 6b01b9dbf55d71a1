"""Tests for structlog configuration."""

import json
import logging

import pytest
import structlog

from opentribe.logging import setup_logging


@pytest.fixture
def production_logging(caplog):
    setup_logging(debug=False)
    caplog.set_level(logging.INFO)
    yield caplog
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


class TestSetupLogging:
    def test_json_lines_include_request_context(self, production_logging):
        structlog.contextvars.bind_contextvars(method="GET", path="/api/v1/feed")
        structlog.get_logger("opentribe.test").info("feed_served", count=3)

        event = json.loads(production_logging.records[-1].getMessage())
        assert event["event"] == "feed_served"
        assert event["count"] == 3
        assert event["path"] == "/api/v1/feed"
        assert event["level"] == "info"

    def test_driver_loggers_are_quieted(self, production_logging):
        assert logging.getLogger("pymongo").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
