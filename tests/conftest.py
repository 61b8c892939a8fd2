"""
Pytest configuration and shared fixtures.

Registers the integration marker (tests against the real Facturama sandbox)
and provides an app wired to test credentials with outbound traffic mocked
by respx.
"""

import pytest
import respx
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.core.config import Settings

PRODUCTION_URL = "https://api.facturama.test"
SANDBOX_URL = "https://apisandbox.facturama.test"


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against the real Facturama sandbox"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring Facturama sandbox credentials"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def test_settings():
    """Settings with fixed test credentials, ignoring any local .env file"""
    return Settings(
        _env_file=None,
        facturama_url=PRODUCTION_URL,
        facturama_user="prod-user",
        facturama_password="prod-secret",
        facturama_sandbox_url=SANDBOX_URL,
        facturama_sandbox_user="sandbox-user",
        facturama_sandbox_password="sandbox-secret",
        facturama_timeout=5.0,
    )


@pytest.fixture
def client(test_settings):
    return TestClient(create_app(test_settings))


@pytest.fixture
def facturama_mock():
    """Mock every outbound httpx call; unmatched requests fail the test"""
    with respx.mock(assert_all_called=False) as mock:
        yield mock
