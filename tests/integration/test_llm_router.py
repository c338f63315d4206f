from __future__ import annotations

import asyncio

import pytest

from resume_ranker.config import Settings
from resume_ranker.llm.providers import ProviderConfig
from resume_ranker.llm.router import LLMRouter, LLMUnavailableError
from resume_ranker.types import ModelResponse


class FakeProvider:
    def __init__(self, name: str, *, content: str = "", error: Exception | None = None):
        self.config = ProviderConfig(name=name, base_url="http://fake", api_key="x", model="m", timeout_sec=1)
        self.content = content
        self.error = error
        self.prompts: list[str] = []

    async def complete_text(self, *, prompt: str, model: str | None = None) -> ModelResponse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return ModelResponse(content=self.content)


class FakePool:
    def __init__(self, providers: dict[str, FakeProvider]):
        self.providers = providers

    def is_enabled(self, name: str) -> bool:
        return name in self.providers

    def get(self, name: str) -> FakeProvider:
        return self.providers[name]


def test_router_without_any_provider_raises() -> None:
    router = LLMRouter(settings=Settings(openai_api_key="", local_llm_enabled=False))
    with pytest.raises(LLMUnavailableError):
        asyncio.run(router.complete("ping"))


def test_router_uses_primary_provider() -> None:
    openai = FakeProvider("openai", content="from openai")
    local = FakeProvider("local", content="from local")
    router = LLMRouter(
        settings=Settings(llm_extract_provider="openai"),
        pool=FakePool({"openai": openai, "local": local}),
    )

    assert asyncio.run(router.complete("ping")) == "from openai"
    assert local.prompts == []


def test_router_falls_back_to_secondary_provider() -> None:
    openai = FakeProvider("openai", error=RuntimeError("upstream down"))
    local = FakeProvider("local", content="from local")
    router = LLMRouter(
        settings=Settings(llm_extract_provider="openai"),
        pool=FakePool({"openai": openai, "local": local}),
    )

    assert asyncio.run(router.complete("ping")) == "from local"


def test_router_raises_last_error_when_all_fail() -> None:
    router = LLMRouter(
        settings=Settings(llm_extract_provider="local"),
        pool=FakePool(
            {
                "local": FakeProvider("local", error=RuntimeError("local down")),
                "openai": FakeProvider("openai", error=RuntimeError("openai down")),
            }
        ),
    )
    with pytest.raises(RuntimeError, match="openai down"):
        asyncio.run(router.complete("ping"))


def test_single_provider_failure_propagates_unchanged() -> None:
    error = RuntimeError("only provider down")
    router = LLMRouter(
        settings=Settings(llm_extract_provider="openai"),
        pool=FakePool({"openai": FakeProvider("openai", error=error)}),
    )
    with pytest.raises(RuntimeError) as caught:
        asyncio.run(router.complete("ping"))
    assert caught.value is error
