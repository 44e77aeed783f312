"""Unit tests for setup_logging."""

import logging

from gatewaysync.logging_config import setup_logging


def test_setup_logging_applies_level_override(monkeypatch):
    logger = logging.getLogger("gatewaysync")
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setenv("GATEWAYSYNC_LOG_LEVEL", "INFO")

    setup_logging("debug")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1

    # Idempotent: no duplicate handlers.
    setup_logging()
    assert len(logger.handlers) == 1
    logger.setLevel(logging.NOTSET)
