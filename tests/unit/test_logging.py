"""Tests for fitout.core.logging - renderer selection and handler setup."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from fitout.core import logging as fitout_logging


@pytest.fixture()
def root_logger(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in fitout_logging._handlers:
        root.removeHandler(handler)
        handler.close()
    fitout_logging._handlers.clear()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _record(message="unit %s created", args=("101",)) -> logging.LogRecord:
    return logging.LogRecord("fitout.units", logging.INFO, __file__, 1, message, args, None)


class TestBuildFormatter:
    def test_json_lines(self):
        line = fitout_logging.build_formatter("json").format(_record())

        event = json.loads(line)
        assert event["event"] == "unit 101 created"
        assert event["level"] == "info"
        assert event["logger"] == "fitout.units"
        assert "timestamp" in event

    def test_text_is_not_json(self):
        line = fitout_logging.build_formatter("TEXT").format(_record())

        assert "unit 101 created" in line
        with pytest.raises(json.JSONDecodeError):
            json.loads(line)

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="LOG_FORMAT"):
            fitout_logging.build_formatter("xml")


class TestConfigureLogging:
    def test_level_and_handler_from_settings(self, root_logger):
        fitout_logging.configure_logging("json", "warning")

        assert root_logger.level == logging.WARNING
        assert len(fitout_logging._handlers) == 1
        assert fitout_logging._handlers[0] in root_logger.handlers

    def test_reconfigure_replaces_handlers(self, root_logger):
        fitout_logging.configure_logging("json", "INFO")
        first = list(fitout_logging._handlers)

        fitout_logging.configure_logging("text", "DEBUG")

        assert not any(handler in root_logger.handlers for handler in first)
        assert len([h for h in root_logger.handlers if h in fitout_logging._handlers]) == 1

    def test_file_handler_when_logs_dir_exists(self, root_logger, tmp_path):
        (tmp_path / "logs").mkdir()

        fitout_logging.configure_logging("text", "INFO")

        assert any(isinstance(h, logging.FileHandler) for h in fitout_logging._handlers)
