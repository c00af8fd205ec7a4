import asyncio
import json

import httpx
import pytest

from fileqa.qa.errors import ProviderError, UpstreamError
from fileqa.qa.llm import SYSTEM, ChatClient


def _client(handler, **kwargs):
    return ChatClient("sk-test", base_url="https://llm.test/v1/", transport=httpx.MockTransport(handler), **kwargs)

def test_complete_sends_chat_request():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Hi"}}], "usage": {"total_tokens": 12}})

    result = _client(handler, model="gpt-3.5-turbo").complete("the prompt")
    assert result.text == "Hi"
    assert result.usage == 12
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-3.5-turbo"
    assert seen["body"]["messages"] == [
        {"role": "system", "content": SYSTEM},
        {"role": "user", "content": "the prompt"},
    ]
    assert seen["body"]["temperature"] == 0
    assert seen["body"]["max_tokens"] == 800
    assert "stream" not in seen["body"]

def test_complete_overrides():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    result = _client(handler).complete("p", model="gpt-4o", temperature=0.5, max_tokens=50)
    assert result.usage is None
    assert seen["body"]["model"] == "gpt-4o"
    assert seen["body"]["temperature"] == 0.5
    assert seen["body"]["max_tokens"] == 50

def test_no_choices_raises_provider_error():
    client = _client(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(ProviderError):
        client.complete("p")
    assert issubclass(ProviderError, UpstreamError)

def test_http_error_propagates():
    client = _client(lambda request: httpx.Response(429, json={"error": {"message": "slow down"}}))
    with pytest.raises(httpx.HTTPStatusError):
        client.complete("p")

def test_from_settings_requires_key(monkeypatch):
    monkeypatch.setattr("fileqa.settings.OPENAI_API_KEY", "")
    with pytest.raises(RuntimeError):
        ChatClient.from_settings()

def test_stream_yields_fragments():
    seen = {}
    sse = (
        'data: {"choices":[{"delta":{"role":"assistant"}}]}\n\n'
        'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n'
        'data: {"choices":[{"delta":{"content":"lo"}}]}\n\n'
        "data: [DONE]\n\n"
        'data: {"choices":[{"delta":{"content":"ignored"}}]}\n\n'
    )

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=sse.encode(), headers={"Content-Type": "text/event-stream"})

    async def collect():
        return [t async for t in _client(handler).stream("p")]

    assert asyncio.run(collect()) == ["Hel", "lo"]
    assert seen["body"]["stream"] is True

def test_stream_http_error_propagates():
    client = _client(lambda request: httpx.Response(401, json={"error": "bad key"}))

    async def collect():
        return [t async for t in client.stream("p")]

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(collect())
