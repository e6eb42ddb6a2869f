import json

import pytest

from storefront.checkout import cart
from storefront.errors import InvalidInput
from storefront.orders.models import CartLine, OrderMetadata

PRODUCTS = {
    "P1": {"id": "P1", "name": "Sneaker", "price": 12.345, "description": "Runner", "image_url": "https://img/p1.png"},
    "P2": {"id": "P2", "name": None, "price": 100},
}


def _metadata(**overrides):
    data = {
        "orderNumber": "ORD-20240101-ABC123",
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "clerkUserId": "user_1",
        "address": {"name": "Jane", "address": "1 Road", "city": "Dhaka", "state": "Dhaka", "zip": "1207"},
    }
    data.update(overrides)
    return OrderMetadata.model_validate(data)


def test_to_line_items_minor_units_and_product_data():
    items = cart.to_line_items(PRODUCTS, [CartLine(product_id="P1", quantity=2), CartLine(product_id="P2", quantity=1)])

    first, second = items
    assert first["quantity"] == 2
    assert first["price_data"]["unit_amount"] == 1235
    assert first["price_data"]["currency"] == "bdt"
    assert first["price_data"]["product_data"] == {
        "name": "Sneaker",
        "metadata": {"id": "P1"},
        "description": "Runner",
        "images": ["https://img/p1.png"],
    }
    assert second["price_data"]["unit_amount"] == 10000
    assert second["price_data"]["product_data"]["name"] == "Unknown Product"
    assert "images" not in second["price_data"]["product_data"]


def test_to_line_items_unknown_product():
    with pytest.raises(InvalidInput):
        cart.to_line_items(PRODUCTS, [CartLine(product_id="nope", quantity=1)])


def test_session_metadata_serializes_address():
    meta = cart.make_session_metadata(_metadata())
    assert meta["orderNumber"] == "ORD-20240101-ABC123"
    assert meta["customerEmail"] == "jane@example.com"
    assert meta["clerkUserId"] == "user_1"
    assert json.loads(meta["address"])["city"] == "Dhaka"
    assert all(isinstance(v, str) for v in meta.values())

    assert cart.make_session_metadata(_metadata(address=None))["address"] == "null"


def test_build_session_params_guest_and_existing_customer():
    lines = [CartLine(product_id="P1", quantity=1)]
    guest = cart.build_session_params(PRODUCTS, lines, _metadata())
    assert guest["customer_email"] == "jane@example.com"
    assert "customer" not in guest
    assert guest["mode"] == "payment"
    assert guest["allow_promotion_codes"] is True
    assert guest["invoice_creation"] == {"enabled": True}
    assert guest["success_url"].endswith("/success?session_id={CHECKOUT_SESSION_ID}&orderNumber=ORD-20240101-ABC123")
    assert guest["cancel_url"].endswith("/cart")

    known = cart.build_session_params(PRODUCTS, lines, _metadata(), customer_id="cus_1")
    assert known["customer"] == "cus_1"
    assert "customer_email" not in known


def test_partner_items_and_cod_url():
    items = cart.to_partner_items(PRODUCTS, [CartLine(product_id="P2", quantity=3)])
    assert items == [{"productId": "P2", "name": "Unknown Product", "price": 100.0, "quantity": 3}]
    assert cart.cod_success_url("ORD-1").endswith("/cod-success?orderNumber=ORD-1")
