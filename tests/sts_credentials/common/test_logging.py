"""Tests for log formatting and setup."""

import json
import logging

import pytest

from sts_credentials.common.exceptions import AcquisitionCommandFailed
from sts_credentials.common.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from sts_credentials.common.logging.formatters import ConsoleFormatter, JSONFormatter
from sts_credentials.common.logging.setup import get_log_file_path, setup_logging
from sts_credentials.common.logging.utilities import log_exception


def _record(msg="message", level=logging.INFO, **extra):
    record = logging.LogRecord("sts_credentials.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    def test_set_and_clear(self):
        set_log_context(provider_id="etl", component="refresher")
        assert get_log_context() == {"provider_id": "etl", "component": "refresher"}

        clear_log_context()
        assert get_log_context() == {"provider_id": None, "component": None}

    def test_none_leaves_existing_value(self):
        set_log_context(provider_id="etl")
        set_log_context(component="manager")

        assert get_log_context()["provider_id"] == "etl"


class TestJSONFormatter:
    def test_includes_context_and_extras(self):
        set_log_context(provider_id="etl")

        entry = json.loads(
            JSONFormatter().format(_record(issued_at=1_700_000_000, outcome="refreshed"))
        )

        assert entry["msg"] == "message"
        assert entry["level"] == "INFO"
        assert entry["provider_id"] == "etl"
        assert entry["issued_at"] == 1_700_000_000
        assert entry["outcome"] == "refreshed"
        assert "file" not in entry

    def test_redacts_error_message(self):
        entry = json.loads(
            JSONFormatter().format(
                _record(level=logging.ERROR, error_message="export SECRET_KEY=abc123")
            )
        )

        assert "abc123" not in entry["error_message"]
        assert "file" in entry

    def test_ignores_unknown_extras(self):
        entry = json.loads(JSONFormatter().format(_record(secret_access_key="nope")))

        assert "secret_access_key" not in entry


class TestConsoleFormatter:
    def test_appends_outcome(self):
        set_log_context(provider_id="etl")

        line = ConsoleFormatter().format(_record("Refresh", outcome="skipped"))

        assert "[etl]" in line
        assert line.endswith("Refresh (skipped)")


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def cleanup(self):
        yield
        logging.getLogger().handlers.clear()

    def test_console_only(self, tmp_path):
        setup_logging(log_dir=tmp_path, file_logging=False)

        assert len(logging.getLogger().handlers) == 1
        assert list(tmp_path.iterdir()) == []

    def test_writes_json_file(self, tmp_path):
        logger = setup_logging(log_dir=tmp_path, provider_id="etl")
        logger.info("hello", extra={"access_key": "ASIA..."})
        for handler in logging.getLogger().handlers:
            handler.flush()

        log_file = get_log_file_path(tmp_path)
        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        hello = [line for line in lines if line["msg"] == "hello"][0]
        assert hello["provider_id"] == "etl"
        assert hello["access_key"] == "ASIA..."

    def test_suppresses_noisy_loggers(self, tmp_path):
        setup_logging(log_dir=tmp_path, file_logging=False)

        assert logging.getLogger("botocore").level == logging.WARNING


def test_log_exception_adds_category(caplog):
    logger = logging.getLogger("sts_credentials.test")
    exc = AcquisitionCommandFailed("exit 1: export SESSION_TOKEN=tok123", exit_status=1)

    with caplog.at_level(logging.WARNING, logger="sts_credentials.test"):
        log_exception(logger, exc, "Refresh failed", level=logging.WARNING, include_traceback=False)

    record = caplog.records[-1]
    assert record.error_category == "transient"
    assert "tok123" not in record.error_message
