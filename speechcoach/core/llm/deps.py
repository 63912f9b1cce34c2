from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from speechcoach.core.llm.gemini_client import GeminiClient, GeminiConfig
from speechcoach.core.llm.openrouter_client import OpenRouterClient, OpenRouterConfig
from speechcoach.core.llm.parts import PromptPart
from speechcoach.core.settings import Settings, get_settings


class LLMClient(Protocol):
    provider: str

    async def generate_json(
        self,
        *,
        system_prompt: str,
        parts: Sequence[PromptPart],
        response_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...


def build_llm_client(settings: Settings) -> LLMClient | None:
    """Build the client for the configured provider, or None when its API key is missing."""

    api_key = settings.llm_api_key
    if not api_key:
        return None

    if settings.llm_provider == "openrouter":
        return OpenRouterClient(
            config=OpenRouterConfig(
                api_key=api_key,
                base_url=settings.openrouter_base_url,
                model=settings.openrouter_model,
                timeout_seconds=float(settings.llm_timeout_seconds),
                temperature=float(settings.llm_temperature),
                max_tokens=int(settings.llm_max_output_tokens),
            )
        )

    return GeminiClient(
        config=GeminiConfig(
            api_key=api_key,
            base_url=settings.gemini_base_url,
            model=settings.gemini_model,
            timeout_seconds=float(settings.llm_timeout_seconds),
            temperature=float(settings.llm_temperature),
            max_output_tokens=int(settings.llm_max_output_tokens),
        )
    )


def get_llm_client() -> LLMClient | None:
    """
    Dependency provider for the model client.

    Returns None when not configured so the route can answer with a configuration
    error instead of raising during dependency resolution.
    """

    return build_llm_client(get_settings())
