"""
Tests — Log formatting.

Covers:
    - JSON records carry the request line and the acting user
    - Readable records show the acting user and duration
    - LOG_FORMAT / LOG_LEVEL from app config
"""

import json
import logging

import pytest
from flask import Flask

from runboard.middleware.logging_config import JSONFormatter, ReadableFormatter, configure_logging


def _record(msg="Request: GET /api/v1/coordinator/stats 200", **extra):
    record = logging.LogRecord("runboard.middleware.timing", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    def test_request_and_actor_fields(self):
        out = json.loads(JSONFormatter().format(_record(
            method="GET", path="/api/v1/coordinator/stats", status=200,
            duration_ms=12.5, user_id=3, role="coordinator",
        )))
        assert out["level"] == "INFO"
        assert out["logger"] == "runboard.middleware.timing"
        assert out["user_id"] == 3
        assert out["role"] == "coordinator"
        assert out["status"] == 200

    def test_unset_fields_omitted(self):
        out = json.loads(JSONFormatter().format(_record(user_id=None, role=None)))
        assert "user_id" not in out
        assert "role" not in out


class TestReadableFormatter:
    def test_actor_and_duration(self):
        line = ReadableFormatter(color=False).format(_record(user_id=7, role="contributor", duration_ms=41.6))
        assert line.endswith("GET /api/v1/coordinator/stats 200 [user=7 contributor] [42ms]")
        assert "\033[" not in line

    def test_anonymous_request(self):
        line = ReadableFormatter(color=False).format(_record())
        assert "[user=" not in line


class TestConfigureLogging:
    def test_config_overrides(self, restore_root_logger):
        app = Flask(__name__)
        app.config.update(TESTING=True, LOG_FORMAT="json", LOG_LEVEL="warning")

        configure_logging(app)

        (handler,) = restore_root_logger.handlers
        assert isinstance(handler.formatter, JSONFormatter)
        assert restore_root_logger.level == logging.WARNING

    def test_readable_outside_production(self, restore_root_logger):
        app = Flask(__name__)
        app.config.update(TESTING=True)

        configure_logging(app)

        (handler,) = restore_root_logger.handlers
        assert isinstance(handler.formatter, ReadableFormatter)
