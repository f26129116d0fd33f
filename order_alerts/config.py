"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        extra="ignore",
    )

    secret_key: str | None = Field(
        default=None,
        description="Secret key used to sign and verify identity tokens (server only)",
        min_length=1,
    )
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        description="Number of minutes before identity tokens expire",
        gt=0,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone (or UTC offset) used to stamp notifications",
    )
    client_url: str = Field(
        default="http://localhost:5173",
        description="Origin of the storefront client allowed by CORS",
    )
    server_url: str = Field(
        default="ws://localhost:4000",
        description="Base websocket URL the notification client connects to",
    )
    badge_cap: int = Field(
        default=9,
        description="Highest unread count shown verbatim on the bell badge",
        gt=0,
    )
    ping_interval: float = Field(
        default=25.0,
        description="Seconds between client heartbeat messages",
        gt=0,
    )
    desktop_notifications: Literal["default", "granted", "denied"] = Field(
        default="default",
        description="Stored user decision about desktop notifications",
    )
    chime_enabled: bool = Field(
        default=True,
        description="Play an audio cue when a new notification arrives",
    )
    log_level: str = Field(default="INFO", description="Root log level for the CLI")

    @model_validator(mode="after")
    def _validate_server_url(self) -> "Settings":
        if not self.server_url.startswith(("ws://", "wss://")):
            raise ValueError("SERVER_URL must use the ws:// or wss:// scheme")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
