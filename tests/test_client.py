import anthropic
import httpx
import pytest

from text_refinery.errors import TransportError
from text_refinery.llm.client import MAX_TEMPERATURE, ClaudeClient, LLMConfig


class FakeMessages:
    def __init__(self, error=None):
        self.requests = []
        self.error = error

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"content": [{"type": "text", "text": "ok"}]}


class FakeAnthropic:
    def __init__(self, error=None):
        self.messages = FakeMessages(error)


def make_client(error=None):
    client = ClaudeClient(LLMConfig(api_key="test-key"))
    client._client = FakeAnthropic(error)
    return client


def test_single_user_message():
    client = make_client()
    client.generate("claude-sonnet-4-20250514", "Edit this.", 0.05, 800)
    (request,) = client.client.messages.requests
    assert request == {
        "model": "claude-sonnet-4-20250514",
        "max_tokens": 800,
        "temperature": 0.05,
        "messages": [{"role": "user", "content": "Edit this."}],
    }


def test_temperature_above_api_limit_is_clamped():
    client = make_client()
    client.generate("claude-sonnet-4-20250514", "Edit this.", 1.7, 800)
    assert client.client.messages.requests[0]["temperature"] == MAX_TEMPERATURE


def test_api_error_becomes_transport_error():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    client = make_client(anthropic.APIError("overloaded", request, body=None))
    with pytest.raises(TransportError):
        client.generate("claude-sonnet-4-20250514", "Edit this.", 0.05, 800)
