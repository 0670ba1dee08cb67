"""Pytest configuration and shared fixtures."""

import pytest

from resumetailor.stores import InMemoryStore
from tests.fixtures import create_test_config


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "cli_coverage: tests that verify CLI commands"
    )
    config.addinivalue_line(
        "markers", "critical: tests that must pass for production"
    )
    config.addinivalue_line(
        "markers", "slow: tests that wait on real threads or timeouts"
    )
    config.addinivalue_line(
        "markers", "integration: end-to-end runs through the service with a fake gateway"
    )


@pytest.fixture
def store():
    """Fresh in-memory resume/attempt/progress store."""
    return InMemoryStore()


@pytest.fixture
def test_config():
    """Default configuration with zero retry backoff."""
    return create_test_config()
