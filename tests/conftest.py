"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
from pathlib import Path

import pytest

from mbestore.core.initializer import create_organization, create_project, create_user
from mbestore.infrastructure.document_store import DocumentStore
from mbestore.infrastructure.store_connection_pool import StoreConnectionPool


@pytest.fixture(autouse=True)
def cleanup_connections():
    """Clean up connection pools after each test to prevent file descriptor leaks."""
    yield
    StoreConnectionPool.close_all()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp = tempfile.mkdtemp()
    yield Path(temp)
    shutil.rmtree(temp)


@pytest.fixture
def store(temp_dir):
    """A fresh document store."""
    store = DocumentStore(temp_dir / "store.db")
    yield store
    store.close()


@pytest.fixture
def admin(store):
    return create_user(store, "admin", admin=True)


@pytest.fixture
def project(store, admin):
    """Org ``acme`` with project ``rocket`` (master branch and root elements)."""
    create_organization(store, admin, "acme")
    return create_project(store, admin, "acme", "rocket")
