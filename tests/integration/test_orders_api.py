import pytest

ADDRESS = {"name": "Jane Doe", "address": "1 Road", "city": "Dhaka", "state": "Dhaka", "zip": "1207"}


def _cod_body(**overrides):
    body = {
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "clerkUserId": "user_1",
        "address": dict(ADDRESS),
        "products": [{"productId": "P1", "quantity": 2}],
    }
    body.update(overrides)
    return body


def test_cod_order_created(client, store):
    store.add_product("P1", price=100, discount=10, stock=5)

    r = client.post("/api/v1/orders/cod", json=_cod_body())

    assert r.status_code == 201
    data = r.json()
    assert data["success"] is True
    assert data["order"]["total_price"] == 180
    assert data["order"]["amount_discount"] == 20
    assert data["order"]["status"] == "pending"
    assert store.products["P1"]["stock"] == 3


@pytest.mark.parametrize("overrides, message", [
    ({"products": []}, "Missing required fields in request body"),
    ({"address": None}, "Missing required fields in request body"),
    ({"address": {**ADDRESS, "state": ""}}, "Incomplete address information"),
])
def test_cod_order_invalid_request(client, store, overrides, message):
    store.add_product("P1", price=100, discount=10, stock=5)

    r = client.post("/api/v1/orders/cod", json=_cod_body(**overrides))

    assert r.status_code == 400
    assert r.json() == {"error": message}
    assert store.orders == []
    assert store.products["P1"]["stock"] == 5


def test_cod_order_store_failure(client, store, monkeypatch):
    store.add_product("P1", price=100, stock=5)

    def failing_insert(order):
        raise RuntimeError("insert failed")

    monkeypatch.setattr("storefront.orders.repository.insert_order", failing_insert)
    r = client.post("/api/v1/orders/cod", json=_cod_body())
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to create COD order"}
    assert store.products["P1"]["stock"] == 5


def test_list_orders_requires_user_header(client):
    r = client.get("/api/v1/orders")
    assert r.status_code == 401


def test_list_orders_newest_first(client, store):
    store.orders.extend([
        {"id": 1, "user_id": "user_1", "order_number": "OLD", "order_date": "2024-01-01T00:00:00+00:00"},
        {"id": 2, "user_id": "user_1", "order_number": "NEW", "order_date": "2024-02-01T00:00:00+00:00"},
        {"id": 3, "user_id": "user_2", "order_number": "OTHER", "order_date": "2024-03-01T00:00:00+00:00"},
    ])

    r = client.get("/api/v1/orders", headers={"X-User-Id": "user_1"})

    assert r.status_code == 200
    orders = r.json()["orders"]
    assert [o["order_number"] for o in orders] == ["NEW", "OLD"]
    assert orders[0]["delivery_date"] == "2024-02-04"


def test_cod_order_accepts_numeric_zip(client, store):
    store.add_product("P1", price=100, stock=5)

    r = client.post("/api/v1/orders/cod", json=_cod_body(address={**ADDRESS, "zip": 1207}))

    assert r.status_code == 201
    assert store.orders[0]["address"]["zip"] == "1207"
