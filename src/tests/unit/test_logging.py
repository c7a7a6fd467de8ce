"""Tests for logging configuration."""

import json
import logging
from unittest.mock import Mock

import pytest

from restart_monitor.config.logging import (
    configure_logging,
    get_logger,
    log_restart_event,
    resolve_level,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("DEBUG", logging.DEBUG),
        ("info", logging.INFO),
        ("WARN", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("nonsense", logging.INFO),
    ],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_configure_logging_sets_root_level():
    configure_logging(level="WARNING")
    assert logging.getLogger().level == logging.WARNING


def test_configure_logging_with_file(tmp_path):
    """Test logging configuration with file output."""
    log_file = tmp_path / "logs" / "monitor.log"

    configure_logging(level="INFO", log_file=str(log_file))
    get_logger("restart_monitor.test_file").info("Vote passed", tally=3, quorum=3)

    assert log_file.exists()
    content = log_file.read_text()
    assert "Vote passed" in content
    assert "tally" in content


def test_configure_logging_json(tmp_path):
    log_file = tmp_path / "monitor.json.log"

    configure_logging(level="INFO", log_file=str(log_file), json_logs=True)
    get_logger("restart_monitor.test_json").info("TPS check cycle complete", bad_samples=2)

    record = json.loads(log_file.read_text().strip().splitlines()[-1])
    assert record["event"] == "TPS check cycle complete"
    assert record["bad_samples"] == 2
    assert record["level"] == "info"


def test_log_restart_event_uses_error_level_for_failures():
    logger = Mock()

    log_restart_event(logger, "vote", "failed", unit="gtnh.service")
    logger.error.assert_called_once_with(
        "Restart event",
        trigger="vote",
        outcome="failed",
        metric_type="restart",
        unit="gtnh.service",
    )
    logger.info.assert_not_called()


def test_log_restart_event_uses_info_level_otherwise():
    logger = Mock()

    log_restart_event(logger, "performance", "triggered", reading=12.5)

    logger.info.assert_called_once()
    assert logger.info.call_args.kwargs["reading"] == 12.5
