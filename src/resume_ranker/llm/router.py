from __future__ import annotations

import logging

from resume_ranker.config import Settings, get_settings
from resume_ranker.llm.providers import LLMProvider, ProviderPool

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """No model provider is configured."""


class LLMRouter:
    """Sends prompts to the configured provider, falling back to the other one.

    Failures are re-raised after every candidate provider has been tried; the
    pipeline's retry wrapper decides what happens next.
    """

    def __init__(self, settings: Settings | None = None, pool: ProviderPool | None = None):
        self.settings = settings or get_settings()
        self.pool = pool or ProviderPool(self.settings)

    async def complete(self, prompt: str) -> str:
        providers = self._providers()
        if not providers:
            raise LLMUnavailableError(
                "No LLM provider configured; set OPENAI_API_KEY or LOCAL_LLM_ENABLED=true"
            )

        for index, provider in enumerate(providers):
            try:
                response = await provider.complete_text(prompt=prompt)
                return response.content
            except Exception as exc:
                logger.warning("LLM call failed provider=%s error=%s", provider.config.name, exc)
                if index == len(providers) - 1:
                    raise
        raise LLMUnavailableError("No LLM provider answered")

    def _providers(self) -> list[LLMProvider]:
        primary = self.settings.llm_extract_provider
        fallback = "local" if primary == "openai" else "openai"
        return [self.pool.get(name) for name in (primary, fallback) if self.pool.is_enabled(name)]
