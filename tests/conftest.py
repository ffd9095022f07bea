"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings require these; tests never reach a real project
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator

from repositories import InMemoryDocumentStore, ORDERS, LOTS

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error
        self._filters = []
        self._limit = None
        self._write = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        self._write = ("insert", data)
        return self

    def upsert(self, data, **kwargs):
        self._write = ("upsert", data)
        return self

    def update(self, data):
        self._write = ("update", data)
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matching(self) -> list:
        return [
            row for row in self._data
            if all(row.get(column) == value for column, value in self._filters)
        ]

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error

        if self._write is not None:
            kind, payload = self._write
            if kind == "update":
                rows = [{**row, **payload} for row in self._matching()]
                return MockSupabaseResponse(data=rows)
            rows = payload if isinstance(payload, list) else [payload]
            return MockSupabaseResponse(data=[dict(row) for row in rows])

        rows = self._matching()
        if self._limit is not None:
            rows = rows[:self._limit]
        return MockSupabaseResponse(
            data=rows,
            count=self._count if self._count is not None else len(rows)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery([dict(row) for row in self._data], self._count, self._error)

    def select(self, *args, **kwargs):
        return self._query().select(*args, **kwargs)

    def insert(self, data):
        return self._query().insert(data)

    def upsert(self, data, **kwargs):
        return self._query().upsert(data, **kwargs)

    def update(self, data):
        return self._query().update(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count, "error": None}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query against a table raise."""
        config = self._tables.setdefault(table_name, {"data": [], "count": None, "error": None})
        config["error"] = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None, "error": None})
        return MockSupabaseTable(config["data"], config["count"], config["error"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("tracked_lots", [
                {"lot_number": "402505411400001", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("planning_orders", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("repositories.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def fixed_now() -> datetime:
    """Wednesday of ISO week 5, 2025."""
    return datetime(2025, 1, 29, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def seed(store):
    """
    Put documents straight into the store.

    Usage:
        def test_something(store, seed):
            seed(orders=[OrderFactory.create()], lots=[LotFactory.create()])
    """
    def _seed(orders: list = (), lots: list = ()):
        for order in orders:
            store.set(ORDERS, order["order_id"], order)
        for lot in lots:
            store.set(LOTS, lot["lot_number"], lot)
        return store

    return _seed


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Service getters are patched per test; the lifespan hook is not run.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/orders")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
