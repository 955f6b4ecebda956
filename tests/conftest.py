"""Test configuration and shared fixtures.

Provide isolated test settings, an in-memory descriptor source and a client
fixture for the application test suite. All fixtures ensure tests run without
external dependencies on environment files, containers or network services.
"""
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.main import app, get_descriptor_source
from app.smokecheck.core.logging_config import configure_logging
from helpers import FakeSource, make_service

# ==============================================================================
# CONFIGURATION FIXTURES
# ==============================================================================

@pytest.fixture(scope="session")
def mock_settings() -> Settings:
    """Provide isolated test configuration without external dependencies.

    Returns:
        Settings: Test configuration with no containers, no external services,
            and fast probe timings.
    """
    return Settings(
        ENVIRONMENT="test",
        LOG_LEVEL="debug",
        APPLICATION_NAME="demo-app",
        PROBE_TIMEOUT_MS=200,
        PROBE_RETRY_COUNT=1,
        PROBE_RETRY_DELAY_MS=0,
        _env_file=None  # Bypass local environment file
    )


@pytest.fixture(scope="session", autouse=True)
def configured_logging(mock_settings: Settings) -> None:
    """Route structlog through stdlib logging (stderr) for the whole session."""
    configure_logging(mock_settings)


# ==============================================================================
# DESCRIPTOR FIXTURES
# ==============================================================================

@pytest.fixture
def healthy_source() -> FakeSource:
    """Provide a source with one healthy container and one reachable service."""
    return FakeSource(services=[make_service("API")])


# ==============================================================================
# HTTP CLIENT FIXTURES
# ==============================================================================

@pytest.fixture(scope="function")
def client_for(mock_settings: Settings) -> Generator[Callable[[FakeSource], TestClient], None, None]:
    """Provide a factory building a test client bound to a given source.

    Preserve original dependency overrides and restore them after test
    completion to prevent test isolation issues.
    """
    original_overrides = dict(app.dependency_overrides)
    clients: list[TestClient] = []

    def _factory(source: FakeSource) -> TestClient:
        app.dependency_overrides[get_settings] = lambda: mock_settings
        app.dependency_overrides[get_descriptor_source] = lambda: source
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _factory

    for test_client in clients:
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)


@pytest.fixture(scope="function")
def client(client_for, healthy_source: FakeSource) -> TestClient:
    """Provide a test client whose smoke run sees only healthy dependencies."""
    return client_for(healthy_source)
