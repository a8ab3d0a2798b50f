"""
Pytest configuration and shared fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from inventory_api.config import APIConfig
from inventory_api.main import create_app
from inventory_api.models import Book
from inventory_api.store import InventoryStore


@pytest.fixture
def test_config():
    """Create API configuration for testing."""
    return APIConfig(seed_books=True, log_level="DEBUG", log_format="console", _env_file=None)


@pytest.fixture
def store():
    """Create a store holding the default sample books."""
    return InventoryStore.with_seed_data()


@pytest.fixture
def empty_store():
    """Create a store with no books."""
    return InventoryStore()


@pytest.fixture
def client(store, test_config):
    """Create test client bound to the seeded store."""
    return TestClient(create_app(store=store, settings=test_config))


@pytest.fixture
def sample_book():
    """Create a sample book that is not part of the seed data."""
    return Book(id="42", title="Test Book", author="Test Author", quantity=5)


@pytest.fixture
def sample_book_payload():
    """Sample request body for creating a book."""
    return {"id": "42", "title": "Test Book", "author": "Test Author", "quantity": 5}
