"""Tests for Settings, get_settings() and structlog configuration."""

from __future__ import annotations

import structlog

from src.tencent_meeting.config import Environment, Settings, get_settings
from src.tencent_meeting.core.logging import configure_structlog


class TestSettings:
    """Tests for the pydantic-settings configuration."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.API_URL == "https://api.meeting.qq.com"
        assert settings.TIMEOUT == 30
        assert settings.RETRY_TIMES == 3
        assert settings.CACHE_TTL == 3600
        assert settings.AUTH_TYPE == "JWT"
        assert settings.VERIFY_SSL is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TENCENT_MEETING_TIMEOUT", "12")
        monkeypatch.setenv("TENCENT_MEETING_ENVIRONMENT", "production")

        settings = Settings(_env_file=None)

        assert settings.TIMEOUT == 12
        assert settings.ENVIRONMENT == Environment.production

    def test_proxy_url_requires_host_and_port(self):
        assert Settings(_env_file=None, PROXY_HOST="proxy.local").proxy_url() is None
        settings = Settings(_env_file=None, PROXY_HOST="proxy.local", PROXY_PORT=8080)
        assert settings.proxy_url() == "http://proxy.local:8080"

    def test_all_config_snapshot(self):
        config = Settings(_env_file=None, APP_ID="app-1").all_config()

        assert config["app_id"] == "app-1"
        assert config["api_url"] == "https://api.meeting.qq.com"
        assert "secret_key" not in config

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestConfigureStructlog:
    """Tests for configure_structlog()."""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_production_uses_json_renderer(self):
        configure_structlog(Settings(_env_file=None, ENVIRONMENT="production"))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_development_uses_console_renderer(self):
        configure_structlog(Settings(_env_file=None, ENVIRONMENT="development"))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
