"""Configuration management for invoicechat."""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from invoicechat.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="INVOICECHAT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Transport
    chat_url: str = Field(default="http://localhost:3000/api/chat", description="Streaming chat endpoint")
    request_timeout_seconds: float = Field(default=60.0, gt=0, description="Timeout for one chat request")

    # Transcript
    reveal_interval_seconds: float = Field(default=0.01, ge=0, description="Delay between revealed characters")
    confirmation_message: str = Field(default="Tool called", description="Reply shown after a tool result")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, applying non-None overrides."""

    updates = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**updates)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
