"""
Tests for logging configuration.
"""

import io
import json
import logging

from bvc.logging_config import get_logger, setup_logging


def test_json_format_carries_repo_id():
    stream = io.StringIO()
    setup_logging(level="INFO", fmt="json", stream=stream)

    get_logger("bvc.test", repo_id="repo_1").info("Pushed %s", "abc12345")
    record = json.loads(stream.getvalue().strip().splitlines()[-1])

    assert record["message"] == "Pushed abc12345"
    assert record["repo_id"] == "repo_1"
    assert record["level"] == "INFO"
    assert record["logger"] == "bvc.test"


def test_text_format_defaults_repo_id():
    stream = io.StringIO()
    setup_logging(level="WARNING", fmt="text", stream=stream)

    logging.getLogger("bvc.test").warning("Skipping %s", "a.txt")
    logging.getLogger("bvc.test").info("hidden")

    output = stream.getvalue()
    assert "Skipping a.txt [repo_id=N/A]" in output
    assert "hidden" not in output


def test_setup_replaces_previous_handler():
    first = setup_logging(stream=io.StringIO())
    second = setup_logging(stream=io.StringIO())

    handlers = logging.getLogger().handlers
    assert second in handlers
    assert first not in handlers


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("BVC_LOG_LEVEL", "debug")
    handler = setup_logging(stream=io.StringIO())
    assert handler.level == logging.DEBUG
