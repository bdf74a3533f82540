"""
Settings and logging setup tests.
"""

import json
import logging
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings
from core.logging import JSONFormatter, setup_logging
from services.challenge import PLAN_LENGTH_DAYS


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    sql_level = logging.getLogger("sqlalchemy.engine").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)


class TestLogFormat:
    def test_production_defaults_to_json(self):
        assert _settings(ENVIRONMENT="production").log_format == "json"

    def test_development_defaults_to_text(self):
        assert _settings(ENVIRONMENT="development").log_format == "text"

    def test_explicit_format_wins(self):
        assert _settings(ENVIRONMENT="production", LOG_FORMAT="text").log_format == "text"
        assert _settings(ENVIRONMENT="development", LOG_FORMAT="json").log_format == "json"

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError):
            _settings(LOG_FORMAT="xml")


class TestSetupLogging:
    def test_production_uses_json_formatter(self, restore_logging):
        root = setup_logging(_settings(ENVIRONMENT="production"))
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_development_uses_text_formatter(self, restore_logging):
        root = setup_logging(_settings(ENVIRONMENT="development"))
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_app_loggers_follow_log_level(self, restore_logging):
        setup_logging(_settings(LOG_LEVEL="debug"))
        assert logging.getLogger("services.challenge").level == logging.DEBUG
        assert logging.getLogger("routers").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_db_echo_enables_sql_logging(self, restore_logging):
        setup_logging(_settings(DB_ECHO=True))
        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO

        setup_logging(_settings(DB_ECHO=False))
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestJSONFormatter:
    def test_extra_fields_merged(self):
        record = logging.LogRecord("routers.challenge", logging.INFO, __file__, 10, "Plan accepted", None, None)
        record.extra_fields = {"plan_id": "abc", "duration_ms": 12}

        entry = json.loads(JSONFormatter().format(record))

        assert entry["logger"] == "routers.challenge"
        assert entry["message"] == "Plan accepted"
        assert entry["plan_id"] == "abc"
        assert entry["duration_ms"] == 12


class TestPlanLength:
    def test_plan_length_is_not_configurable(self, monkeypatch):
        monkeypatch.setenv("PLAN_LENGTH_DAYS", "21")
        config = _settings()
        assert not hasattr(config, "PLAN_LENGTH_DAYS")
        assert PLAN_LENGTH_DAYS == 14
