"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from chainflow.config import Settings, get_settings, reset_settings


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CHAINFLOW_LOG_FORMAT", raising=False)

        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.log_format == "json"
        assert settings.http_timeout_s == 30
        assert settings.x402_default_network == "solana-devnet"
        assert settings.x402_max_amount is None
        assert not settings.telegram_enabled

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("CHAINFLOW_HTTP_TIMEOUT_S", "5")
        monkeypatch.setenv("CHAINFLOW_X402_DEFAULT_ASSET", "SOL")
        monkeypatch.setenv("CHAINFLOW_TELEGRAM_BOT_TOKEN", "123:abc")

        settings = Settings(_env_file=None)

        assert settings.http_timeout_s == 5
        assert settings.x402_default_asset == "SOL"
        assert settings.telegram_bot_token.get_secret_value() == "123:abc"
        assert "123:abc" not in repr(settings)

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValidationError):
            Settings(http_timeout_s=timeout)

    def test_telegram_enabled_needs_all_parts(self):
        assert not Settings(telegram_notify_enabled=True, telegram_bot_token="t").telegram_enabled
        assert not Settings(telegram_bot_token="t", telegram_chat_id="c").telegram_enabled
        assert Settings(
            telegram_notify_enabled=True, telegram_bot_token="t", telegram_chat_id="c",
        ).telegram_enabled

    def test_get_settings_is_cached(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("CHAINFLOW_ENV", "staging")
        reset_settings()

        assert get_settings().env == "staging"
