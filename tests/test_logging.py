"""Tests for JSONL formatting and logger setup."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from mcp_trace.telemetry import system_logger as system_logger_module
from mcp_trace.telemetry.system_logger import (
    ConsoleFormatter,
    configure_system_logger_file,
    get_system_logger,
)
from mcp_trace.utils.logging.iso_formatter import ISO8601Formatter, format_iso8601
from mcp_trace.utils.logging.logger_setup import setup_jsonl_logger


def make_record(msg, *args) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


class TestFormatIso8601:
    """format_iso8601 output."""

    def test_utc_with_millisecond_precision(self):
        """UTC datetimes format with milliseconds and a Z suffix."""
        moment = datetime(2025, 12, 4, 10, 48, 37, 123456, tzinfo=timezone.utc)

        assert format_iso8601(moment) == "2025-12-04T10:48:37.123Z"

    def test_other_offsets_are_converted_to_utc(self):
        """Offset-aware datetimes are converted to UTC."""
        moment = datetime(2025, 12, 4, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_iso8601(moment) == "2025-12-04T10:00:00.000Z"

    def test_naive_is_treated_as_utc(self):
        """Naive datetimes are formatted as UTC."""
        assert format_iso8601(datetime(2025, 1, 1)) == "2025-01-01T00:00:00.000Z"


class TestISO8601Formatter:
    """JSONL output for dict, JSON-string and plain messages."""

    @pytest.fixture
    def formatter(self) -> ISO8601Formatter:
        return ISO8601Formatter()

    def test_dict_message_gets_time_first(self, formatter):
        """Dict messages become JSON with time as the first field."""
        # Act
        output = formatter.format(make_record({"event": "trace_event", "size": 12}))

        # Assert
        parsed = json.loads(output)
        assert list(parsed)[0] == "time"
        assert parsed["time"].endswith("Z")
        assert parsed["event"] == "trace_event"
        assert parsed["size"] == 12

    def test_json_string_message_is_parsed(self, formatter):
        """JSON string messages are parsed into fields."""
        parsed = json.loads(formatter.format(make_record('{"event": "x"}')))

        assert parsed["event"] == "x"

    def test_plain_message_is_wrapped(self, formatter):
        """Plain messages are wrapped under message."""
        parsed = json.loads(formatter.format(make_record("hello %s", "world")))

        assert parsed["message"] == "hello world"

    def test_broken_json_string_is_kept_as_message(self, formatter):
        """Unparseable JSON strings are kept verbatim."""
        parsed = json.loads(formatter.format(make_record("{not json")))

        assert parsed["message"] == "{not json"

    def test_non_json_values_are_stringified(self, formatter):
        """Values json cannot encode are written with str()."""
        moment = datetime(2025, 1, 1, tzinfo=timezone.utc)

        parsed = json.loads(formatter.format(make_record({"at": moment})))

        assert parsed["at"] == str(moment)


class TestSetupJsonlLogger:
    """JSONL file logger creation."""

    def test_creates_directory_and_writes_lines(self, tmp_path):
        """Logger creates its directory and appends JSONL lines."""
        # Arrange
        log_file = tmp_path / "nested" / "out.jsonl"

        # Act
        logger = setup_jsonl_logger("mcp-trace.test.jsonl", log_file)
        logger.info({"event": "one"})
        logger.info({"event": "two"})

        # Assert
        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert events == ["one", "two"]
        assert logger.propagate is False

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        """Setting up twice leaves one file handler."""
        log_file = tmp_path / "out.jsonl"

        setup_jsonl_logger("mcp-trace.test.repeat", log_file)
        logger = setup_jsonl_logger("mcp-trace.test.repeat", log_file)
        logger.info({"event": "once"})

        assert len(logger.handlers) == 1
        assert len(log_file.read_text().splitlines()) == 1

    def test_respects_level(self, tmp_path):
        """Records below the logger level are dropped."""
        log_file = tmp_path / "out.jsonl"

        logger = setup_jsonl_logger("mcp-trace.test.level", log_file, logging.WARNING)
        logger.info({"event": "dropped"})
        logger.warning({"event": "kept"})

        assert [json.loads(line)["event"] for line in log_file.read_text().splitlines()] == ["kept"]


class TestSystemLogger:
    """Singleton system logger and its console/file output."""

    def test_is_singleton(self):
        """get_system_logger returns one shared logger."""
        assert get_system_logger() is get_system_logger()

    def test_console_formatter_prefers_message_field(self):
        """Console output uses the message field when present."""
        formatter = ConsoleFormatter()
        record = make_record({"event": "pipeline_handler_failed", "message": "Handler failed"})
        record.levelname = "WARNING"

        assert formatter.format(record) == "WARNING: Handler failed"

    def test_console_formatter_falls_back_to_event(self):
        """Console output falls back to the event field."""
        formatter = ConsoleFormatter()
        record = make_record({"event": "trace_engine_started"})

        assert formatter.format(record) == "INFO: trace_engine_started"


class TestSystemLoggerFile:
    """Attaching and replacing the system log file handler."""

    @pytest.fixture(autouse=True)
    def detached_file_handler(self, monkeypatch):
        monkeypatch.setattr(system_logger_module, "_file_handler", None)
        monkeypatch.setattr(system_logger_module, "_file_handler_path", None)
        yield
        handler = system_logger_module._file_handler
        if handler is not None:
            get_system_logger().removeHandler(handler)
            handler.close()

    def test_writes_warnings_only(self, tmp_path):
        """The file receives WARNING and above, not INFO."""
        log_path = tmp_path / "system" / "system.jsonl"

        configure_system_logger_file(log_path)
        get_system_logger().info({"event": "dropped"})
        get_system_logger().warning({"event": "kept"})

        assert [json.loads(line)["event"] for line in log_path.read_text().splitlines()] == ["kept"]

    def test_same_path_keeps_one_handler(self, tmp_path):
        """Configuring the same path twice attaches a single file handler."""
        log_path = tmp_path / "system.jsonl"

        configure_system_logger_file(log_path)
        configure_system_logger_file(log_path)
        get_system_logger().warning({"event": "once"})

        file_handlers = [
            h
            for h in get_system_logger().handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == str(log_path)
        ]
        assert len(file_handlers) == 1
        assert len(log_path.read_text().splitlines()) == 1

    def test_new_path_replaces_previous_file(self, tmp_path):
        """A different path moves system logging to the new file."""
        # Arrange
        first_path = tmp_path / "a" / "system.jsonl"
        second_path = tmp_path / "b" / "system.jsonl"
        configure_system_logger_file(first_path)

        # Act
        configure_system_logger_file(second_path)
        get_system_logger().warning({"event": "after_switch"})

        # Assert
        assert first_path.read_text() == ""
        assert [json.loads(line)["event"] for line in second_path.read_text().splitlines()] == ["after_switch"]
