import os
import sys
import tempfile
from pathlib import Path

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from llm_gateway import LlmGatewayError
from services.session_store import InMemorySessionStore
from storage.migrate import migrate


class StubCompletion:
    """Completion service double: canned replies per route plus a call log."""

    def __init__(self, replies=None, default="ok"):
        self.replies = dict(replies or {})
        self.default = default
        self.calls = []

    def complete(self, system, messages, *, route):
        self.calls.append({"system": system, "messages": list(messages), "route": route})
        reply = self.replies.get(route, self.default)
        if isinstance(reply, list):
            reply = reply.pop(0) if reply else self.default
        if callable(reply):
            reply = reply(system, messages)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def count(self, route):
        return sum(1 for call in self.calls if call["route"] == route)


class FakeRedis:
    """Dict-backed stand-in for a redis client; reads and writes can be made to fail."""

    def __init__(self):
        self.data = {}
        self.expiry = {}
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key):
        if self.fail_reads:
            raise RedisConnectionError("connection reset")
        return self.data.get(key)

    def set(self, key, value, ex=None):
        if self.fail_writes:
            raise RedisConnectionError("connection reset")
        self.data[key] = value
        self.expiry[key] = ex


class FailingCompletion(StubCompletion):
    def complete(self, system, messages, *, route):
        self.calls.append({"system": system, "messages": list(messages), "route": route})
        raise LlmGatewayError("service unavailable")


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def stub_completion():
    return StubCompletion


@pytest.fixture
def failing_completion():
    return FailingCompletion()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def memory_store():
    return InMemorySessionStore()
