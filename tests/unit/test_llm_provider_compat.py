from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from resume_ranker.llm.providers import LLMProvider, ProviderConfig


class DummyAPIError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FakeResponsePayload:
    def __init__(self, *, output_text: str = "", raw: dict | None = None):
        self.output_text = output_text
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeChatPayload:
    def __init__(self, *, content: str | None, raw: dict | None = None):
        self.choices = [SimpleNamespace(message=SimpleNamespace(content=content))]
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeAsyncEndpoint:
    def __init__(self, fn):
        self._fn = fn
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self._fn(**kwargs)


class FakeClient:
    def __init__(self, *, responses_fn, chat_fn):
        self.responses = FakeAsyncEndpoint(responses_fn)
        self.chat = SimpleNamespace(completions=FakeAsyncEndpoint(chat_fn))


def _provider_with_fake_client(fake_client: FakeClient) -> LLMProvider:
    provider = LLMProvider(
        ProviderConfig(
            name="openai",
            base_url="http://localhost:9999/v1",
            api_key="dummy",
            model="gpt-5-mini",
            timeout_sec=5,
            max_output_tokens=4000,
        )
    )
    provider.client = fake_client
    return provider


def test_complete_text_uses_responses_when_available() -> None:
    def responses_fn(**kwargs):
        return FakeResponsePayload(output_text="RESP_OK", raw={"id": "resp_1"})

    def chat_fn(**kwargs):
        return FakeChatPayload(content="CHAT_OK")

    client = FakeClient(responses_fn=responses_fn, chat_fn=chat_fn)
    result = asyncio.run(_provider_with_fake_client(client).complete_text(prompt="ping"))

    assert result.content == "RESP_OK"
    assert result.raw["api_path"] == "responses"
    assert client.responses.calls[0]["model"] == "gpt-5-mini"
    assert client.responses.calls[0]["max_output_tokens"] == 4000
    assert client.chat.completions.calls == []


def test_complete_text_falls_back_to_chat_on_responses_not_found() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("Not found", status_code=404)

    def chat_fn(**kwargs):
        return FakeChatPayload(content="CHAT_OK", raw={"id": "chat_1"})

    client = FakeClient(responses_fn=responses_fn, chat_fn=chat_fn)
    result = asyncio.run(_provider_with_fake_client(client).complete_text(prompt="ping"))

    assert result.content == "CHAT_OK"
    assert result.raw["api_path"] == "chat_completions"
    assert client.chat.completions.calls[0]["max_tokens"] == 4000


def test_other_responses_errors_propagate() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("rate limited", status_code=429)

    def chat_fn(**kwargs):
        return FakeChatPayload(content="CHAT_OK")

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    with pytest.raises(DummyAPIError, match="rate limited"):
        asyncio.run(provider.complete_text(prompt="ping"))


def test_complete_text_raises_when_fallback_path_also_fails() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("Not found", status_code=404)

    def chat_fn(**kwargs):
        raise RuntimeError("chat path failed")

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    with pytest.raises(RuntimeError, match="chat path failed"):
        asyncio.run(provider.complete_text(prompt="ping"))


def test_empty_chat_content_becomes_empty_string() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("model not found")

    def chat_fn(**kwargs):
        return FakeChatPayload(content=None)

    provider = _provider_with_fake_client(FakeClient(responses_fn=responses_fn, chat_fn=chat_fn))
    assert asyncio.run(provider.complete_text(prompt="ping")).content == ""
