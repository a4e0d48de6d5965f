import httpx
import pytest

from config import LlmRoute
from llm_gateway import CompletionGateway, LlmGatewayError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _gateway(client, api_key_env="TEST_LLM_KEY"):
    route = LlmRoute(
        name="persona_chat",
        base_url="https://llm.test",
        model="test-model",
        timeout_s=5,
        max_tokens=42,
        api_key_env=api_key_env,
    )
    return CompletionGateway({"persona_chat": route}, client=client)


@pytest.fixture(autouse=True)
def api_key(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "  sk-test  ")


def test_posts_messages_payload_and_reads_content_blocks():
    client = FakeClient(FakeResponse(payload={"content": [{"type": "text", "text": "Bonjour !"}]}))
    reply = _gateway(client).complete(
        "system script",
        [{"role": "user", "content": "Salut"}, {"role": "assistant", "content": ""}],
        route="persona_chat",
    )
    assert reply == "Bonjour !"
    request = client.requests[0]
    assert request["url"] == "https://llm.test/v1/messages"
    assert request["json"] == {
        "model": "test-model",
        "max_tokens": 42,
        "system": "system script",
        "messages": [{"role": "user", "content": "Salut"}],
    }
    assert request["headers"]["x-api-key"] == "sk-test"
    assert request["headers"]["anthropic-version"] == "2023-06-01"
    assert request["timeout"] == 5


def test_reads_chat_completion_choices():
    client = FakeClient(FakeResponse(payload={"choices": [{"message": {"content": "marc"}}]}))
    assert _gateway(client).complete("s", [{"role": "user", "content": "x"}], route="persona_chat") == "marc"


def test_missing_credentials(monkeypatch):
    monkeypatch.delenv("TEST_LLM_KEY", raising=False)
    client = FakeClient(FakeResponse(payload={"content": "x"}))
    with pytest.raises(LlmGatewayError):
        _gateway(client).complete("s", [{"role": "user", "content": "x"}], route="persona_chat")
    assert client.requests == []


def test_unknown_route():
    with pytest.raises(LlmGatewayError):
        _gateway(FakeClient()).complete("s", [], route="scoring")


@pytest.mark.parametrize(
    "client",
    [
        FakeClient(FakeResponse(status_code=529, payload={})),
        FakeClient(FakeResponse(payload=ValueError("not json"))),
        FakeClient(FakeResponse(payload={"content": []})),
        FakeClient(error=httpx.ConnectTimeout("timed out")),
    ],
)
def test_failures_surface_as_gateway_errors(client):
    with pytest.raises(LlmGatewayError):
        _gateway(client).complete("s", [{"role": "user", "content": "x"}], route="persona_chat")


def test_route_without_key_env_sends_no_key():
    client = FakeClient(FakeResponse(payload={"content": "ok"}))
    assert _gateway(client, api_key_env=None).complete("s", [{"role": "user", "content": "x"}], route="persona_chat") == "ok"
    assert "x-api-key" not in client.requests[0]["headers"]
