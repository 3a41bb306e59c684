"""
Tests for logging configuration
"""

import json

import pytest
import structlog

from time_server.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_logs(capsys):
    """Test that JSON mode renders one JSON object per event"""
    setup_logging("INFO", json_logs=True)

    structlog.get_logger("test").info("Time range parsed", text="yesterday")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "Time range parsed"
    assert event["text"] == "yesterday"
    assert event["level"] == "info"
    assert "timestamp" in event


def test_level_filters_events(capsys):
    setup_logging("warning", json_logs=True)

    structlog.get_logger("test").info("hidden")

    assert "hidden" not in capsys.readouterr().err
