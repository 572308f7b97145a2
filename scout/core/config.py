"""
Configuration management for the Scout research service.

Provides centralized, validated configuration from environment variables
with proper type checking and defaults. Settings are built once at process
start and handed to the components that need them.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scout.core.exceptions import ConfigurationError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _parse_bool(v) -> bool:
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes", "y")
    return bool(v)


class Settings(BaseSettings):
    """Main application settings."""

    # LLM provider
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    llm_model: str = Field(default="gpt-4o-mini", alias="SCOUT_LLM_MODEL")
    llm_temperature: float = Field(default=0.2, alias="SCOUT_LLM_TEMPERATURE")
    synthesis_temperature: float = Field(default=0.7, alias="SCOUT_SYNTHESIS_TEMPERATURE")
    competitor_max_tokens: int = Field(default=2048, alias="SCOUT_COMPETITOR_MAX_TOKENS")
    csv_max_tokens: int = Field(default=3000, alias="SCOUT_CSV_MAX_TOKENS")
    synthesis_max_tokens: int = Field(default=8000, alias="SCOUT_SYNTHESIS_MAX_TOKENS")

    # Fetching
    fetch_timeout: float = Field(default=30.0, alias="SCOUT_FETCH_TIMEOUT")
    max_content_chars: int = Field(default=50_000, alias="SCOUT_MAX_CONTENT_CHARS")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="SCOUT_USER_AGENT")

    # Pipeline bounds
    max_competitors: int = Field(default=5, alias="SCOUT_MAX_COMPETITORS")
    csv_context_rows: int = Field(default=100, alias="SCOUT_CSV_CONTEXT_ROWS")

    # Service runtime
    host: str = Field(default="127.0.0.1", alias="SCOUT_HOST")
    port: int = Field(default=8000, alias="SCOUT_PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_json: bool = Field(default=False, alias="SCOUT_LOG_JSON")

    @field_validator("debug", "log_json", mode="before")
    @classmethod
    def parse_flags(cls, v):
        return _parse_bool(v)

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def blank_key_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def has_llm_credential(self) -> bool:
        return bool(self.openai_api_key)

    def require_llm_credential(self) -> str:
        """Return the LLM key or raise before any network call is attempted."""
        if not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY environment variable is not set. "
                "Add it to your environment or .env file."
            )
        return self.openai_api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings (used by tests)."""
    get_settings.cache_clear()
