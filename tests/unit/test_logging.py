"""Unit tests for logging setup."""

import json
import logging

import pytest
import structlog

from clip_actions.utils.logging import setup_logging


@pytest.fixture
def restore_logging():
    """Undo global logging configuration after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test setup_logging."""

    def test_json_lines_on_stderr(self, restore_logging, capsys):
        logger = setup_logging("INFO", "json")

        logger.info("Engine started", live=0)
        captured = capsys.readouterr()

        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "Engine started"
        assert record["live"] == 0
        assert record["level"] == "info"
        assert record["logger"] == "clip_actions"
        assert "timestamp" in record
        assert captured.out == ""

    def test_level_filters_records(self, restore_logging, capsys):
        logger = setup_logging("WARNING", "json")

        logger.info("Hidden")
        logger.warning("Shown")

        lines = capsys.readouterr().err.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["Shown"]

    def test_plain_format(self, restore_logging, capsys):
        logger = setup_logging("debug", "plain")

        logger.debug("Rebuilt action menu", items=3)

        err = capsys.readouterr().err
        assert "Rebuilt action menu" in err
        assert "items=3" in err
