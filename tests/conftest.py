"""Global test configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
import structlog

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fixtures.fake_appliance import FakeAppliance  # noqa: E402

from trueform.config.provider_config_handler import ProviderConfigManager  # noqa: E402
from trueform.domain.ports import LoggingPort  # noqa: E402


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests against the in-memory appliance")


@pytest.fixture(scope="session", autouse=True)
def route_logs_to_stdlib():
    """Send structlog entries through the standard library so stdout stays clean."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def reset_config_manager():
    """Reset the configuration singleton around each test."""
    ProviderConfigManager.reset()
    yield
    ProviderConfigManager.reset()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep TRUEFORM_* variables of the developer's shell out of the tests."""
    import os

    for name in list(os.environ):
        if name.startswith("TRUEFORM_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TRUEFORM_CONSOLE_ENABLED", "false")


@pytest.fixture
def mock_logger():
    """Logger double implementing the logging port."""
    return Mock(spec=LoggingPort)


@pytest.fixture
def appliance() -> FakeAppliance:
    """Fresh in-memory appliance."""
    return FakeAppliance()


@pytest.fixture
def handler_kwargs(mock_logger):
    """Fast timings for handlers under test."""
    return {"logger": mock_logger, "job_timeout": 2.0, "poll_interval": 0.01}
