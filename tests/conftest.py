"""Test configuration and fixtures."""

import logging
import os

import pytest
import structlog

from icr_registry_actions.core.scan import ScanPoller
from tests.helpers import FakeClock, FakeRegistryClient


@pytest.fixture
def clock():
    """Manual clock shared by a poller under test."""
    return FakeClock()


@pytest.fixture
def client():
    """Fake registry client answering OK scans."""
    return FakeRegistryClient()


@pytest.fixture
def make_poller(clock):
    """Build a poller on the fake clock."""

    def _make(client, **kwargs):
        return ScanPoller(client, clock=clock, sleep=clock.sleep, **kwargs)

    return _make


@pytest.fixture
def reset_logging():
    """Restore logging after a test that configures it."""
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring registry"
    )
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Skip integration tests without registry credentials
    skip_integration = pytest.mark.skip(reason="ICR_TEST_APIKEY not set")

    for item in items:
        if "integration" in item.keywords and not os.getenv("ICR_TEST_APIKEY"):
            item.add_marker(skip_integration)
