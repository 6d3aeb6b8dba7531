"""
Pytest configuration and fixtures for taxflow tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import asyncio
import os
from typing import Generator

import pytest

from taxflow.core.jurisdiction import BoundingBoxResolver, JurisdictionResolution, JurisdictionResolver
from taxflow.core.models import RawOrderRow
from taxflow.warehouse.order_store import InMemoryOrderStore


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run full imports"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# COORDINATES
# =======================

MANHATTAN = ("40.7580", "-73.9855")
ALBANY = ("42.6526", "-73.7562")
ADIRONDACKS = ("44.5000", "-74.5000")  # in the state, in no county box
LOS_ANGELES = ("34.0522", "-118.2437")


def make_row(
    order_id="1",
    latitude=MANHATTAN[0],
    longitude=MANHATTAN[1],
    subtotal="100.00",
    timestamp=None,
) -> RawOrderRow:
    """Build a raw row with Manhattan defaults"""
    return RawOrderRow(
        id=str(order_id),
        latitude=latitude,
        longitude=longitude,
        subtotal=subtotal,
        timestamp=timestamp,
    )


@pytest.fixture(scope="session")
def row_factory():
    """Builder for raw rows (Manhattan, subtotal 100.00 by default)"""
    return make_row


@pytest.fixture(scope="session")
def places() -> dict[str, tuple[str, str]]:
    """Named (latitude, longitude) pairs as CSV text"""
    return {
        "manhattan": MANHATTAN,
        "albany": ALBANY,
        "adirondacks": ADIRONDACKS,
        "los_angeles": LOS_ANGELES,
    }


# =======================
# STORE FIXTURES
# =======================

@pytest.fixture(scope="function")
def memory_store() -> InMemoryOrderStore:
    """Fresh in-memory order store"""
    return InMemoryOrderStore()


class FlakyOrderStore(InMemoryOrderStore):
    """In-memory store that fails upserts for chosen ids"""

    def __init__(self, failing_ids):
        super().__init__()
        self.failing_ids = set(failing_ids)

    def upsert(self, order_id, fields):
        if order_id in self.failing_ids:
            raise ConnectionError(f"simulated write failure for {order_id}")
        return super().upsert(order_id, fields)


@pytest.fixture(scope="function")
def flaky_store_factory():
    """Factory for stores that fail writes for given ids"""
    return FlakyOrderStore


# =======================
# RESOLVER FIXTURES
# =======================

class SlowResolver(JurisdictionResolver):
    """
    Bounding-box resolver with an artificial delay, so tests can cancel
    while an import is between chunks.
    """

    strategy = "slow"

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.inner = BoundingBoxResolver()
        self.calls = 0

    async def _lookup(self, lat, lon) -> JurisdictionResolution:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return await self.inner._lookup(lat, lon)


@pytest.fixture(scope="function")
def bbox_resolver() -> BoundingBoxResolver:
    """Offline bounding-box resolver"""
    return BoundingBoxResolver()


@pytest.fixture(scope="function")
def slow_resolver() -> SlowResolver:
    """Resolver that yields to the event loop on every row"""
    return SlowResolver()


# =======================
# ROW FIXTURES
# =======================

@pytest.fixture(scope="function")
def valid_rows() -> list[RawOrderRow]:
    """Twelve valid Manhattan rows with ids 1..12"""
    return [
        make_row(order_id=i, subtotal=f"{10 * i}.00", timestamp="2025-11-04T10:17:04.000Z")
        for i in range(1, 13)
    ]


@pytest.fixture(scope="function")
def mixed_rows() -> list[RawOrderRow]:
    """Valid rows mixed with one of each row-level failure"""
    return [
        make_row(order_id=1, subtotal="100.00"),
        make_row(order_id=2, subtotal="-5"),
        make_row(order_id=3, latitude=LOS_ANGELES[0], longitude=LOS_ANGELES[1]),
        make_row(order_id=4, latitude="abc"),
        make_row(order_id=5, latitude=ALBANY[0], longitude=ALBANY[1], subtotal="50.00"),
    ]


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_taxflow",
        password="test_password",
        dbname="test_orders"
    ) as postgres:
        # Wait for container to be ready
        postgres.get_connection_url()
        yield postgres

