"""Toolkit configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Settings loaded from TENCENT_MEETING_* environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TENCENT_MEETING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # API endpoint
    API_URL: str = "https://api.meeting.qq.com"
    TIMEOUT: int = 30
    RETRY_TIMES: int = 3

    # Logging
    LOG_LEVEL: str = "INFO"
    DEBUG_ENABLED: bool = False

    CACHE_TTL: int = 3600

    # Credentials
    APP_ID: str = ""
    SECRET_ID: str = ""
    SECRET_KEY: str | None = None
    AUTH_TYPE: str = "JWT"  # JWT or OAuth2
    AUTH_TOKEN: str | None = None
    WEBHOOK_SECRET: str | None = None

    # Network
    PROXY_HOST: str | None = None
    PROXY_PORT: int | None = None
    VERIFY_SSL: bool = True

    def proxy_url(self) -> str | None:
        """Return the proxy URL when both host and port are configured."""
        if self.PROXY_HOST and self.PROXY_PORT:
            return f"http://{self.PROXY_HOST}:{self.PROXY_PORT}"
        return None

    def all_config(self) -> dict[str, Any]:
        """Snapshot of the settings under lower-case keys."""
        return {
            "api_url": self.API_URL,
            "timeout": self.TIMEOUT,
            "retry_times": self.RETRY_TIMES,
            "log_level": self.LOG_LEVEL,
            "debug_enabled": self.DEBUG_ENABLED,
            "cache_ttl": self.CACHE_TTL,
            "app_id": self.APP_ID,
            "auth_type": self.AUTH_TYPE,
            "webhook_secret": self.WEBHOOK_SECRET,
            "auth_token": self.AUTH_TOKEN,
            "proxy_host": self.PROXY_HOST,
            "proxy_port": self.PROXY_PORT,
            "verify_ssl": self.VERIFY_SSL,
        }


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
