import pytest

ADDRESS = {"name": "Jane", "address": "1 Road", "city": "Dhaka", "state": "Dhaka", "zip": "1207"}


def _body(method=None, items=None, **meta):
    metadata = {
        "orderNumber": "ORD-20240101-ABC123",
        "customerName": "Jane",
        "customerEmail": "jane@example.com",
        "address": ADDRESS,
        **meta,
    }
    if method is not None:
        metadata["paymentMethod"] = method
    return {"items": items if items is not None else [{"productId": "P1", "quantity": 2}], "metadata": metadata}


@pytest.fixture
def fake_stripe(monkeypatch):
    created = []

    def fake_create_session(params):
        created.append(params)
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    monkeypatch.setattr("storefront.checkout.stripe_client.find_customer_id", lambda email: None)
    monkeypatch.setattr("storefront.checkout.stripe_client.create_session", fake_create_session)
    return created


def test_card_checkout_returns_stripe_url(client, store, fake_stripe):
    store.add_product("P1", price=100, stock=5)

    r = client.post("/api/v1/checkout", json=_body())

    assert r.status_code == 200
    assert r.json() == {"url": "https://checkout.stripe.test/cs_test_1", "orderNumber": "ORD-20240101-ABC123"}
    assert fake_stripe[0]["metadata"]["orderNumber"] == "ORD-20240101-ABC123"
    assert store.orders == []


def test_cod_checkout_returns_confirmation_url(client, store):
    store.add_product("P1", price=100, discount=10, stock=5)

    r = client.post("/api/v1/checkout", json=_body("cod"))

    assert r.status_code == 200
    assert r.json()["url"].endswith("/cod-success?orderNumber=ORD-20240101-ABC123")
    assert store.orders[0]["total_price"] == 180
    assert store.products["P1"]["stock"] == 3


def test_checkout_invalid_payment_method(client, store):
    r = client.post("/api/v1/checkout", json=_body("paypal"))
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid payment method: paypal"}


def test_checkout_empty_cart(client, store):
    r = client.post("/api/v1/checkout", json=_body(items=[]))
    assert r.status_code == 400
    assert r.json() == {"error": "Cart is empty"}


def test_checkout_invalid_json(client):
    r = client.post("/api/v1/checkout", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400


def test_checkout_upstream_failure_is_generic(client, store, monkeypatch):
    store.add_product("P1", price=100, stock=5)

    def boom(params):
        raise RuntimeError("stripe exploded with secret details")

    monkeypatch.setattr("storefront.checkout.stripe_client.find_customer_id", lambda email: None)
    monkeypatch.setattr("storefront.checkout.stripe_client.create_session", boom)

    r = client.post("/api/v1/checkout", json=_body())
    assert r.status_code == 500
    assert r.json() == {"error": "Checkout failed"}


def test_security_headers_present(client, store, fake_stripe):
    store.add_product("P1", price=100, stock=5)
    r = client.post("/api/v1/checkout", json=_body())
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
