"""Configuration for SQLAssist."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from SQLASSIST_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SQLASSIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Model provider
    # ==========================================================================

    model_provider: Literal["gemini", "openai"] = Field(
        default="gemini",
        description="Language model service used for generation and explanations",
    )

    gemini_api_key: str | None = Field(default=None, repr=False)
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    openai_api_key: str | None = Field(default=None, repr=False)
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None

    request_timeout_seconds: float = Field(default=60.0, gt=0)

    # ==========================================================================
    # Execution bounds
    # ==========================================================================

    statement_timeout_seconds: int = Field(default=30, gt=0)
    max_rows: int = Field(default=1000, gt=0)

    sql_dialect: str | None = Field(
        default=None,
        description="sqlglot read dialect for validation (e.g. postgres, mysql, sqlite)",
    )

    log_level: str = "WARNING"

    def provider_kwargs(self) -> dict[str, Any]:
        """Constructor arguments for the configured model provider."""
        if self.model_provider == "openai":
            return {
                "api_key": self.openai_api_key,
                "model": self.openai_model,
                "base_url": self.openai_base_url,
                "timeout": self.request_timeout_seconds,
            }
        return {
            "api_key": self.gemini_api_key,
            "model": self.gemini_model,
            "base_url": self.gemini_base_url,
            "timeout": self.request_timeout_seconds,
        }


def get_settings() -> Settings:
    """Load settings from the environment (a fresh instance on each call)."""
    return Settings()
