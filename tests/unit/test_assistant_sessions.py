import asyncio

import pytest
from fakeredis import FakeAsyncRedis

from storefront.assistant.sessions import KEY_PREFIX, ConversationStore
from storefront.errors import InvalidInput


def _run(coro):
    return asyncio.run(coro)


def test_login_get_logout_cycle():
    async def scenario():
        redis = FakeAsyncRedis(decode_responses=True)
        store = ConversationStore(redis, ttl=120)

        assert await store.get("chat-1") == {}
        state = await store.login("chat-1", "user_42")
        assert state["user_id"] == "user_42"

        again = await store.get("chat-1")
        ttl = await redis.ttl(f"{KEY_PREFIX}chat-1")

        existed = await store.logout("chat-1")
        after = await store.get("chat-1")
        missing = await store.logout("chat-1")
        return again, ttl, existed, after, missing

    again, ttl, existed, after, missing = _run(scenario())
    assert again["user_id"] == "user_42"
    assert 0 < ttl <= 120
    assert existed is True
    assert after == {}
    assert missing is False


def test_remember_search_keeps_login():
    async def scenario():
        store = ConversationStore(FakeAsyncRedis(decode_responses=True))
        await store.login("chat-2", "user_1")
        await store.remember_search("chat-2", "sneakers")
        return await store.get("chat-2")

    state = _run(scenario())
    assert state["user_id"] == "user_1"
    assert state["last_search"] == "sneakers"


def test_conversations_are_isolated():
    async def scenario():
        store = ConversationStore(FakeAsyncRedis(decode_responses=True))
        await store.login("a", "user_a")
        return await store.get("b")

    assert _run(scenario()) == {}


@pytest.mark.parametrize("conversation_id", ["", "has space", "x" * 200])
def test_invalid_conversation_id(conversation_id):
    store = ConversationStore(FakeAsyncRedis(decode_responses=True))
    with pytest.raises(InvalidInput):
        store.key(conversation_id)


def test_login_requires_user_id():
    store = ConversationStore(FakeAsyncRedis(decode_responses=True))
    with pytest.raises(InvalidInput):
        _run(store.login("chat-3", "  "))
