"""
Root-level pytest configuration for Issue Radar.

Configures:
- pytest-asyncio for async test support
- Custom markers (integration, etc.)
- Fresh global cache and rate limiters for every test
"""

import pytest

from utils.cache_gateway import reset_cache_gateway
from utils.rate_limiter import reset_limiters


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (may require network access)"
    )


pytest_plugins = ["pytest_asyncio"]


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Global cache entries and limiter locks must not leak between event loops."""
    reset_cache_gateway()
    reset_limiters()
    yield
    reset_cache_gateway()
    reset_limiters()
