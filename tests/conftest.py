"""
Shared pytest configuration and fixtures for bulk sourcing tests.

This file provides common fixtures and configuration used across all test types
in the hexagonal architecture test suite.
"""

import sys
from pathlib import Path

import pytest

# Add project root and test helpers to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent / "fixtures"))

from bulk_sourcing.core.domain import SourcingOptions

from test_helpers import (
    FakeHost, FakeMaterializer, FakeOperationClient, FakeResultFetcher, ImmediateSleeper
)


# Domain Model Fixtures
@pytest.fixture
def sourcing_options():
    """Options with a short poll budget so failing scripts end quickly."""
    return SourcingOptions(
        store_identity="test-shop.myshopify.com",
        credentials="shpat_test",
        poll_interval_ms=1000,
        max_poll_attempts=10,
        max_restarts=3
    )


@pytest.fixture
def sample_product_records():
    """A product with one image and one child variant, as Shopify writes them."""
    return [
        {
            "id": "gid://shopify/Product/1",
            "title": "Snowboard",
            "handle": "snowboard",
            "images": {"edges": []}
        },
        {
            "id": "gid://shopify/ProductImage/11",
            "originalSrc": "https://cdn.shopify.com/s/files/snowboard.png",
            "altText": "Snowboard",
            "__parentId": "gid://shopify/Product/1"
        },
        {
            "id": "gid://shopify/ProductVariant/21",
            "title": "Default Title",
            "price": "699.95",
            "__parentId": "gid://shopify/Product/1"
        }
    ]


# Test Double Fixtures
@pytest.fixture
def fake_host():
    """In-memory host collecting nodes, reports and cache writes."""
    return FakeHost()


@pytest.fixture
def immediate_sleeper():
    """Sleeper that never waits."""
    return ImmediateSleeper()


@pytest.fixture
def fake_fetcher():
    return FakeResultFetcher()


@pytest.fixture
def fake_materializer():
    return FakeMaterializer()


@pytest.fixture
def idle_client():
    """Client with no job in progress and nothing scripted."""
    return FakeOperationClient()


# Pytest Configuration Hooks
def pytest_configure(config):
    """Configure pytest with custom settings."""
    markers = [
        "unit: Unit tests (fast, isolated)",
        "integration: Integration tests (slower, multiple components)",
        "contract: Port contract compliance tests",
        "architecture: Architecture validation tests",
    ]

    for marker in markers:
        config.addinivalue_line("markers", marker)


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Auto-mark tests based on file path
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "contract" in path:
            item.add_marker(pytest.mark.contract)
        elif "architecture" in path:
            item.add_marker(pytest.mark.architecture)
