import os
import tempfile

import mongomock
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="boutique-uploads-"))

import database  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def db():
    test_db = mongomock.MongoClient()["boutique_test"]
    database.ensure_indexes(test_db)
    return test_db


@pytest.fixture
def client(db):
    app.dependency_overrides[database.get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def inventory_payload(**overrides):
    payload = {
        "ItemName": "Classic T-Shirt",
        "Category": "Tops",
        "Quantity": 150,
        "reorderThreshold": 100,
        "Location": "Warehouse A",
        "Brand": "Levi's",
        "Sizes": "S, M, L",
        "Colors": "Black,White",
        "Gender": "Men",
        "Style": "Casual",
        "SupplierName": "Acme Textiles",
        "SupplierContact": "acme@example.com",
        "image": "C:\\Users\\staff\\Pictures\\tshirt.png",
        "unitPrice": 50,
    }
    payload.update(overrides)
    return payload


def order_payload(**overrides):
    payload = {
        "userId": "7",
        "items": [
            {"itemId": "a1", "quantity": 2, "price": 19.99, "title": "Linen Shirt", "color": "Blue", "size": "M", "img": "uploads/inventory/shirt.png"},
            {"itemId": "b2", "quantity": 1, "price": 45.5, "title": "Chinos", "size": "L", "img": "uploads/inventory/chinos.png"},
        ],
        "total": 1,
        "customerInfo": {"name": "Amal Perera", "email": "Amal@Example.com", "mobile": "0771234567"},
        "deliveryInfo": {"address": "12 Galle Road", "city": "Colombo", "postalCode": "00300"},
        "paymentMethod": "Cash",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_inventory(client):
    def _make(**overrides):
        res = client.post("/api/inventory", json=inventory_payload(**overrides))
        assert res.status_code == 201, res.text
        return res.json()["data"]
    return _make


@pytest.fixture
def make_retrieved(client, make_inventory):
    """Create an inventory item and retrieve some of it; returns the staged record."""
    def _make(quantity=40, **overrides):
        item = make_inventory(**overrides)
        res = client.put(
            f"/api/inventory/{item['inventoryID']}/stock-status",
            json={"action": "retrieve", "Quantity": quantity},
        )
        assert res.status_code == 200, res.text
        staged = client.get("/api/inventory/retrieved/all").json()["data"]
        return next(s for s in staged if s["inventoryID"] == item["inventoryID"])
    return _make
