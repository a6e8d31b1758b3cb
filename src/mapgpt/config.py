"""Runtime configuration for the MapGPT services."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from mapgpt.errors import ConfigError

# Plain environment names accepted for secrets in addition to the prefixed ones.
_SECRET_ENV_FALLBACKS: dict[str, str] = {
    "grok_api_key": "GROK_API_KEY",
    "serper_api_key": "SERPER_API_KEY",
}


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="mapgpt_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"
    log_json: bool = True

    # Secrets; resolved lazily through require_secret()
    grok_api_key: str | None = None
    serper_api_key: str | None = None

    # Completion collaborator (OpenAI-compatible chat completions)
    completion_url: str = "https://api.x.ai/v1/chat/completions"
    completion_model: str = "grok-3"
    completion_max_tokens: int = 600
    completion_temperature: float = 0.7
    completion_timeout_seconds: float = 60.0
    system_role_enabled: bool = True

    # Search collaborator
    search_url: str = "https://google.serper.dev/search"
    search_gl: str = "ng"
    search_hl: str = "en"
    search_limit: int = 5
    search_timeout_seconds: float = 15.0
    recency_window_days: int = 30
    web_search_fallback: bool = True

    # Scrape collaborator
    news_url: str = "https://www.myschoolgist.com/ng/tag/www-mapoly-edu-ng/"
    news_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    news_limit: int = 10
    news_timeout_seconds: float = 15.0
    news_passthrough: bool = False

    # Prompt composition
    domain_guard_enabled: bool = True

    # CORS
    cors_allow_origins: tuple[str, ...] = ()  # e.g., ("*") to allow all
    cors_allow_credentials: bool = False
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("*",)

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def expose_error_details(self) -> bool:
        return self.environment != "prod"

    def require_secret(self, name: str) -> str:
        """Return a secret, reading the plain environment variable at call time if unset."""

        if name not in _SECRET_ENV_FALLBACKS:
            raise KeyError(name)
        value = getattr(self, name) or os.getenv(_SECRET_ENV_FALLBACKS[name], "")
        if not value.strip():
            raise ConfigError(f"{_SECRET_ENV_FALLBACKS[name]} not set in environment")
        return value.strip()


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
