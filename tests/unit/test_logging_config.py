"""
Unit tests for structured logging helpers.
"""

import json
import logging
from unittest.mock import patch

import pytest

from clinic.core.logging_config import (
    ConsoleFormatter,
    JSONFormatter,
    RequestContextFilter,
)


def make_record(message="Slot found", **extra):
    record = logging.LogRecord(
        name="clinic.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestFormatters:
    def test_json_formatter_includes_context_and_request_id(self):
        record = make_record(context={"doctor_id": 3}, request_id="abc123")
        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "Slot found"
        assert entry["level"] == "INFO"
        assert entry["context"] == {"doctor_id": 3}
        assert entry["request_id"] == "abc123"

    def test_json_formatter_omits_empty_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))
        assert "context" not in entry
        assert "request_id" not in entry

    def test_console_formatter_appends_context(self):
        line = ConsoleFormatter().format(make_record(context={"doctor_id": 3}))
        assert line.endswith("Slot found | doctor_id=3")

    def test_filter_without_request_leaves_id_empty(self):
        record = make_record()
        assert RequestContextFilter().filter(record)
        assert record.request_id is None


@pytest.mark.integration
class TestRequestLogging:
    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 32


@pytest.mark.integration
class TestStartupLogging:
    @pytest.mark.parametrize("log_json, expected", [("true", True), ("false", False)])
    def test_logged_format_matches_configured_format(
        self, fresh_database, clock, monkeypatch, log_json, expected
    ):
        from clinic.main import create_app

        monkeypatch.setenv("LOG_JSON", log_json)
        with patch("clinic.main.logger") as main_logger:
            create_app({"LOGIN_DISABLED": True, "CLINIC_CLOCK": clock})

        configured = [
            c for c in main_logger.info.call_args_list if c.args[0] == "Logging configured"
        ]
        assert len(configured) == 1
        assert configured[0].kwargs["extra"]["context"]["json_format"] is expected
