"""
Pytest fixtures and configuration for store service tests

The API runs against an in-memory mongomock database injected through the
get_db dependency, so no MongoDB server or collector is needed.
"""
import os

# Must be set before the application modules read their configuration
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["PROFILING_ENABLED"] = "false"

from datetime import datetime

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app
from models import ORDERS_COLLECTION, PRODUCTS_COLLECTION


@pytest.fixture
def db():
    """
    Provides an empty in-memory database for each test

    Scope: function (fresh database per test)
    """
    client = mongomock.MongoClient()
    yield client["store_test"]
    client.close()


@pytest.fixture
def client(db):
    """
    Provides a TestClient whose requests use the in-memory database

    The lifespan is not entered, so no real MongoDB connection is attempted.
    """
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def insert_product(db):
    """Inserts a product document directly and returns it with its _id."""
    def _insert(name="Laptop", price=999.99, category="Electronics", created_at=None):
        product = {
            "name": name,
            "price": price,
            "category": category,
            "created_at": created_at or datetime(2024, 6, 1, 12, 0, 0),
        }
        product["_id"] = db[PRODUCTS_COLLECTION].insert_one(product).inserted_id
        return product
    return _insert


@pytest.fixture
def insert_order(db):
    """Inserts an order document directly and returns it with its _id."""
    def _insert(product_ids, total_price=100, payment_method="Payme",
                customer_name="Aziz", created_at=None):
        order = {
            "product_ids": list(product_ids),
            "total_price": total_price,
            "customer_name": customer_name,
            "payment_method": payment_method,
            "created_at": created_at or datetime(2024, 6, 1, 12, 0, 0),
        }
        order["_id"] = db[ORDERS_COLLECTION].insert_one(order).inserted_id
        return order
    return _insert


@pytest.fixture
def sample_product_data():
    """
    Provides sample product data for tests
    """
    return {
        "name": "Mechanical Keyboard",
        "price": 79.99,
        "category": "Electronics",
    }
