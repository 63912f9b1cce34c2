from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LLMProvider = Literal["gemini", "openrouter"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "speechcoach"
    app_env: str = Field(
        default="production",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Runtime environment: development|production.",
    )

    # Provider selection
    llm_provider: LLMProvider = Field(
        default="gemini",
        validation_alias=AliasChoices("LLM_PROVIDER", "llm_provider"),
        description="Which generative-model API evaluates speech samples: gemini|openrouter.",
    )

    # Google Gemini
    google_ai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_AI_API_KEY", "google_ai_api_key"),
        description="Google AI Studio API key (required when LLM_PROVIDER=gemini).",
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        validation_alias=AliasChoices("GEMINI_MODEL", "gemini_model"),
        description="Gemini model identifier.",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias=AliasChoices("GEMINI_BASE_URL", "gemini_base_url"),
        description="Base URL for the Gemini API (override for proxies/emulators).",
    )

    # OpenRouter (OpenAI-compatible chat completions)
    openrouter_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "openrouter_api_key"),
        description="OpenRouter API key (required when LLM_PROVIDER=openrouter).",
    )
    openrouter_model: str = Field(
        default="google/gemini-flash-1.5",
        validation_alias=AliasChoices("OPENROUTER_MODEL", "openrouter_model"),
        description="OpenRouter model identifier.",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("OPENROUTER_BASE_URL", "openrouter_base_url"),
        description="Base URL for the OpenRouter API.",
    )

    # Generation parameters shared by both providers
    llm_timeout_seconds: float = Field(
        default=60.0,
        ge=1.0,
        validation_alias=AliasChoices("LLM_TIMEOUT_SECONDS", "llm_timeout_seconds"),
        description="Timeout for the outbound model request (seconds).",
    )
    llm_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        validation_alias=AliasChoices("LLM_TEMPERATURE", "llm_temperature"),
    )
    llm_max_output_tokens: int = Field(
        default=8192,
        ge=256,
        validation_alias=AliasChoices("LLM_MAX_OUTPUT_TOKENS", "llm_max_output_tokens"),
    )

    strict_criteria_validation: bool = Field(
        default=True,
        validation_alias=AliasChoices("STRICT_CRITERIA_VALIDATION", "strict_criteria_validation"),
        description=(
            "If true, reject model output whose evaluationCriteria is not exactly 15 entries "
            "from the known categories (502). If false, only log a warning."
        ),
    )

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
        description="Allowed CORS origins. A single '*' reflects the caller's origin.",
    )

    @property
    def llm_api_key(self) -> str | None:
        if self.llm_provider == "openrouter":
            return self.openrouter_api_key
        return self.google_ai_api_key

    @property
    def llm_api_key_env_name(self) -> str:
        if self.llm_provider == "openrouter":
            return "OPENROUTER_API_KEY"
        return "GOOGLE_AI_API_KEY"

    @property
    def is_development(self) -> bool:
        return str(self.app_env).strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
