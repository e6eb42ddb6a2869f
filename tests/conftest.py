import hashlib
import hmac
import json
import os
import time
from typing import Any, Dict, Generator, List, Optional

# Redis en mémoire et pas de rate limiting Redis pendant les tests (lu par le lifespan)
os.environ.setdefault("USE_FAKE_REDIS_FOR_TESTS", "1")
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from storefront.app import app as fastapi_app
from storefront.errors import DuplicateOrder

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Aucun accès Supabase réel pendant les tests
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.health.service.get_supabase", lambda: MagicMock())


class FakeStore:
    """Tables products/orders en mémoire, avec la même sémantique que les repositories."""

    def __init__(self):
        self.products: Dict[str, Dict[str, Any]] = {}
        self.orders: List[Dict[str, Any]] = []
        self.stock_writes = 0

    def add_product(self, product_id: str, price: Any, discount: Any = 0, stock: Any = None, **extra) -> Dict[str, Any]:
        product = {
            "id": product_id,
            "name": extra.pop("name", f"Product {product_id}"),
            "slug": extra.pop("slug", product_id.lower()),
            "price": price,
            "discount": discount,
            "stock": stock,
            **extra,
        }
        self.products[product_id] = product
        return product

    # --- storefront.products.repository ---
    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        product = self.products.get(str(product_id))
        return dict(product) if product else None

    def get_products_map(self, ids) -> Dict[str, Dict[str, Any]]:
        return {str(i): dict(self.products[str(i)]) for i in ids if str(i) in self.products}

    def compare_and_set_stock(self, product_id: str, expected: Any, new_stock: int) -> bool:
        product = self.products.get(str(product_id))
        if not product or product.get("stock") != expected:
            return False
        product["stock"] = new_stock
        self.stock_writes += 1
        return True

    # --- storefront.orders.repository ---
    def insert_order(self, order: Dict[str, Any]) -> Dict[str, Any]:
        session_id = order.get("stripe_checkout_session_id")
        if order.get("payment_method") == "card" and self.find_order_by_session_id(session_id):
            raise DuplicateOrder(f"Order already exists for session {session_id}")
        row = {"id": len(self.orders) + 1, **order}
        self.orders.append(row)
        return row

    def find_order_by_session_id(self, session_id: str) -> Optional[Dict[str, Any]]:
        for order in self.orders:
            if order.get("stripe_checkout_session_id") == session_id:
                return order
        return None

    def fetch_user_orders(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        return [o for o in self.orders if o.get("user_id") == user_id][:limit]


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    fake = FakeStore()
    monkeypatch.setattr("storefront.products.repository.get_product", fake.get_product)
    monkeypatch.setattr("storefront.products.repository.get_products_map", fake.get_products_map)
    monkeypatch.setattr("storefront.products.repository.compare_and_set_stock", fake.compare_and_set_stock)
    monkeypatch.setattr("storefront.orders.repository.insert_order", fake.insert_order)
    monkeypatch.setattr("storefront.orders.repository.find_order_by_session_id", fake.find_order_by_session_id)
    monkeypatch.setattr("storefront.orders.repository.fetch_user_orders", fake.fetch_user_orders)
    return fake


@pytest.fixture
def webhook_secret(monkeypatch) -> str:
    monkeypatch.setattr("storefront.checkout.stripe_client.STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature valide pour `payload` (t=..., v1=HMAC-SHA256)."""
    ts = int(timestamp if timestamp is not None else time.time())
    digest = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def completed_event(session_id: str = "cs_test_1", **session_overrides) -> Dict[str, Any]:
    session = {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": 18000,
        "currency": "bdt",
        "customer": "cus_123",
        "payment_intent": "pi_123",
        "invoice": None,
        "total_details": {"amount_discount": 2000},
        "metadata": {
            "orderNumber": "ORD-20240101-ABC123",
            "customerName": "Jane Doe",
            "customerEmail": "jane@example.com",
            "clerkUserId": "user_1",
            "address": json.dumps({
                "name": "Jane Doe", "address": "1 Road", "city": "Dhaka", "state": "Dhaka", "zip": "1207",
            }),
        },
    }
    session.update(session_overrides)
    return {"id": "evt_1", "type": "checkout.session.completed", "data": {"object": session}}


def stripe_line_item(product_id: str, quantity: int, unit_amount: int) -> Dict[str, Any]:
    return {
        "id": f"li_{product_id}",
        "quantity": quantity,
        "price": {"unit_amount": unit_amount, "product": {"id": f"prod_{product_id}", "metadata": {"id": product_id}}},
    }
