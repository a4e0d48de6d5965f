import pytest

from config.settings import Settings
from services.session_store import (
    InMemorySessionStore,
    NullSessionStore,
    RedisSessionStore,
    SessionStoreError,
    build_session_store,
    session_key,
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_session_key_prefixes():
    assert session_key("team", "abc") == "team:abc"
    assert session_key("diagnostic", "abc") == "diagnostic:abc"


def test_memory_store_expires_entries():
    clock = FakeClock()
    store = InMemorySessionStore(clock=clock)
    store.set("team:1", {"a": 1}, 60)
    clock.now += 59
    assert store.get("team:1") == {"a": 1}
    clock.now += 1
    assert store.get("team:1") is None


def test_memory_store_returns_copies():
    store = InMemorySessionStore()
    store.set("k", {"items": [1]}, 60)
    store.get("k")["items"].append(2)
    assert store.get("k") == {"items": [1]}


def test_null_store_forgets_everything():
    store = NullSessionStore()
    store.set("k", {"a": 1}, 60)
    assert store.get("k") is None


def test_redis_store_round_trip_with_ttl(fake_redis):
    client = fake_redis
    store = RedisSessionStore(client=client)
    store.set("team:1", {"name": "Léa"}, 86400)
    assert client.expiry["team:1"] == 86400
    assert store.get("team:1") == {"name": "Léa"}


def test_redis_write_failure_is_swallowed(fake_redis):
    fake_redis.fail_writes = True
    store = RedisSessionStore(client=fake_redis)
    store.set("team:1", {"a": 1}, 60)
    assert store.get("team:1") is None


def test_redis_read_failure_is_distinct_from_absent(fake_redis):
    store = RedisSessionStore(client=fake_redis)
    store.set("team:1", {"a": 1}, 60)
    fake_redis.fail_reads = True
    with pytest.raises(SessionStoreError):
        store.get("team:1")
    fake_redis.fail_reads = False
    assert store.get("team:1") == {"a": 1}


def test_redis_store_discards_unreadable_values(fake_redis):
    client = fake_redis
    client.data["team:1"] = "not json"
    assert RedisSessionStore(client=client).get("team:1") is None


def test_build_session_store_backends():
    assert isinstance(build_session_store(Settings(SESSION_BACKEND="auto", REDIS_URL=None)), NullSessionStore)
    assert isinstance(build_session_store(Settings(SESSION_BACKEND="memory")), InMemorySessionStore)
    assert isinstance(
        build_session_store(Settings(SESSION_BACKEND="auto", REDIS_URL="redis://localhost:6379/0")),
        RedisSessionStore,
    )
    with pytest.raises(SessionStoreError):
        build_session_store(Settings(SESSION_BACKEND="redis", REDIS_URL=None))
