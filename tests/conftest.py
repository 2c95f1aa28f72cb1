"""
Pytest configuration and shared fixtures.

Registers the integration marker/option and provides invoice stores and
an API client wired to an in-memory store.
"""

import os
import tempfile

import pytest
from fastapi.testclient import TestClient

from src.api.deps import get_reconciler, get_store
from src.api.main import app
from src.services.chainhook.reconciler import EventReconciler
from src.services.storage import InMemoryInvoiceStore, SQLiteInvoiceStore


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against the real Hiro APIs"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real Hiro API access"
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
def db_path():
    """Create a temporary database file for testing"""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    if os.path.exists(path):
        os.remove(path)


@pytest.fixture
def memory_store():
    store = InMemoryInvoiceStore()
    store.open()
    yield store
    store.close()


@pytest.fixture
def sqlite_store(db_path):
    store = SQLiteInvoiceStore(db_path)
    store.open()
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """Each store contract test runs against both backends"""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def client(memory_store):
    """API client with the lifespan store replaced by an in-memory one"""
    reconciler = EventReconciler(memory_store)
    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_reconciler] = lambda: reconciler
    yield TestClient(app)
    app.dependency_overrides.clear()
