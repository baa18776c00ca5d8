"""Tests for logging configuration."""

import json
import logging

import pytest
import structlog

from rfm_segmentation.observability import configure_logging


class TestConfigureLogging:
    """Test configure_logging."""

    def test_sets_root_level(self):
        configure_logging("WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_invalid_level_raises(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging("LOUD")

    def test_json_events(self, capsys):
        configure_logging("INFO", json_logs=True)
        structlog.get_logger("test").info("segments_ready", segment_count=4)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "segments_ready"
        assert event["segment_count"] == 4
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filters_structlog_events(self, capsys):
        configure_logging("ERROR", json_logs=True)
        structlog.get_logger("test").info("hidden_event")
        assert "hidden_event" not in capsys.readouterr().err
