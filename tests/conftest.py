"""Pytest configuration for gatewaysync tests."""

import logging
import os

import pytest

# Keep the import-time config away from the developer's real files.
os.environ.setdefault("GATEWAYSYNC_CONFIG", "/nonexistent/gatewaysync.yml")
os.environ.setdefault("GATEWAYSYNC_ENV_PATH", "/nonexistent/.env")
os.environ.pop("GATEWAYSYNC_TOKEN", None)

logging.getLogger("gatewaysync").handlers.clear()


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))
