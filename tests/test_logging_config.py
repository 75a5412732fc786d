"""Tests for logging setup."""

import logging

import pytest

from circulation import logging_config


@pytest.fixture
def fresh_root(monkeypatch):
    """Let setup_logging run again and restore the root handlers afterwards."""
    root = logging.getLogger()
    saved = list(root.handlers)
    saved_level = root.level
    monkeypatch.setattr(logging_config, "_logging_initialized", False)
    yield root
    for handler in root.handlers:
        if handler not in saved:
            handler.close()
    root.handlers = saved
    root.setLevel(saved_level)


def test_setup_logging_writes_to_given_file(fresh_root, tmp_path):
    log_file = tmp_path / "logs" / "circulation.log"

    logging_config.setup_logging("WARNING", log_file)
    logging_config.get_logger("circulation.test").debug("loan granted")
    for handler in fresh_root.handlers:
        handler.flush()

    assert log_file.exists()
    assert "loan granted" in log_file.read_text(encoding="utf-8")


def test_setup_logging_runs_once(fresh_root, tmp_path):
    logging_config.setup_logging("INFO", tmp_path / "a.log")
    count = len(fresh_root.handlers)

    logging_config.setup_logging("INFO", tmp_path / "b.log")

    assert len(fresh_root.handlers) == count
    assert not (tmp_path / "b.log").exists()
