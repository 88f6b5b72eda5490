"""
Pytest configuration and fixtures for datasync tests.

Provides in-memory source and destination databases, a tenant registry
pointing at them, and a sync service wired to fake drivers.
"""

from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from src.datasync.registry import ConnectionDescriptor, TenantRegistry
from src.datasync.service import DataSyncService
from src.utils.database_types import DatabaseType
from src.utils.metrics import SyncMetrics
from tests.fakes import FakeDatabase, FakeDriver


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def source_db() -> FakeDatabase:
    """Source tenant database."""
    return FakeDatabase()


@pytest.fixture
def destination_db() -> FakeDatabase:
    """Destination tenant database."""
    return FakeDatabase()


@pytest.fixture
def registry() -> TenantRegistry:
    """Registry with a source tenant and a warehouse tenant on different servers."""
    return TenantRegistry({
        "acme": ConnectionDescriptor(
            tenant_code="acme",
            db_type=DatabaseType.SQLSERVER,
            host="sql01",
            port=1433,
            database="acme",
            user="sync",
            password="secret",
        ),
        "acme_dw": ConnectionDescriptor(
            tenant_code="acme_dw",
            db_type=DatabaseType.SQLSERVER,
            host="sql02",
            port=1433,
            database="acme_dw",
            user="sync",
            password="secret",
        ),
    })


@pytest.fixture
def drivers(source_db, destination_db) -> dict:
    """Driver factory state: the last driver built per tenant."""
    return {"databases": {"acme": source_db, "acme_dw": destination_db}, "built": {}}


@pytest.fixture
def driver_factory(drivers):
    """Factory building FakeDrivers over the fixture databases."""
    def factory(descriptor):
        driver = FakeDriver(drivers["databases"][descriptor.tenant_code], descriptor)
        drivers["built"][descriptor.tenant_code] = driver
        return driver
    return factory


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """Isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def sync_service(registry, driver_factory, metrics_registry) -> DataSyncService:
    """Sync service wired to the in-memory databases."""
    return DataSyncService(
        registry,
        driver_factory=driver_factory,
        metrics=SyncMetrics(registry=metrics_registry),
    )
