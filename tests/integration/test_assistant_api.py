import pytest


@pytest.fixture
def llm(monkeypatch):
    replies = []
    monkeypatch.setattr(
        "storefront.assistant.llm_client.chat_completion",
        lambda messages, timeout=20.0: replies.pop(0),
    )
    monkeypatch.setattr(
        "storefront.products.repository.search_products_by_name",
        lambda term, limit=4: [
            {"id": str(i), "name": f"Sneaker {i}", "price": 100, "slug": f"sneaker-{i}", "image_url": None}
            for i in range(6)
        ],
    )
    return replies


def test_assistant_search_reply_at_most_four_products(client, llm):
    llm.extend(['{"intent": "search"}', '{"query": "sneakers"}'])

    r = client.post("/api/v1/assistant", json={"messages": [{"from": "user", "text": "sneakers"}]})

    assert r.status_code == 200
    data = r.json()
    assert len(data["products"]) == 4
    assert data["reply"].startswith('Here are some products matching "sneakers":')
    assert "→ /product/sneaker-0" in data["reply"]


def test_assistant_requires_messages(client):
    r = client.post("/api/v1/assistant", json={"messages": []})
    assert r.status_code == 400
    assert r.json() == {"error": "No messages provided"}


def test_assistant_model_failure_is_generic(client, monkeypatch):
    def boom(messages, timeout=20.0):
        raise RuntimeError("model down")

    monkeypatch.setattr("storefront.assistant.llm_client.chat_completion", boom)
    r = client.post("/api/v1/assistant", json={"messages": [{"from": "user", "text": "hi"}]})
    assert r.status_code == 500
    assert r.json() == {"error": "Something went wrong."}


def test_conversation_login_state_and_logout(client, llm):
    cid = "tg-12345"

    r = client.post(f"/api/v1/assistant/conversations/{cid}/login", json={"userId": "user_1"})
    assert r.status_code == 200
    assert r.json() == {"conversationId": cid, "userId": "user_1"}

    llm.extend(['{"intent": "search"}', '{"query": "boots"}'])
    client.post("/api/v1/assistant", json={"messages": [{"from": "user", "text": "boots"}], "conversationId": cid})

    state = client.get(f"/api/v1/assistant/conversations/{cid}").json()["state"]
    assert state["user_id"] == "user_1"
    assert state["last_search"] == "boots"

    r = client.delete(f"/api/v1/assistant/conversations/{cid}/login")
    assert r.json() == {"conversationId": cid, "loggedOut": True}
    assert client.get(f"/api/v1/assistant/conversations/{cid}").json()["state"] == {}


def test_conversation_login_requires_user_id(client):
    r = client.post("/api/v1/assistant/conversations/tg-1/login", json={})
    assert r.status_code == 400
