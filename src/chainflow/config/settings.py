"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="CHAINFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core service settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # Node HTTP collaborator
    http_timeout_s: float = Field(
        default=30,
        description="Default timeout for node HTTP calls in seconds",
    )

    # Telegram notifications
    telegram_bot_token: SecretStr | None = Field(
        default=None,
        description="Telegram bot token (notifications disabled when unset)",
    )
    telegram_chat_id: str | None = Field(
        default=None,
        description="Chat that receives workflow notifications",
    )
    telegram_api_url: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL",
    )
    telegram_notify_enabled: bool = Field(
        default=False,
        description="Send workflow notifications to Telegram",
    )

    # x402 paid-resource defaults
    x402_default_scheme: str = Field(default="exact", description="Expected payment scheme")
    x402_default_network: str = Field(
        default="solana-devnet",
        description="Expected payment network",
    )
    x402_default_asset: str = Field(default="USDC", description="Expected payment asset")
    x402_max_amount: float | None = Field(
        default=None,
        description="Refuse payment requirements above this amount",
    )

    @field_validator("http_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the HTTP timeout is positive."""
        if v <= 0:
            raise ValueError("http_timeout_s must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def telegram_enabled(self) -> bool:
        return bool(
            self.telegram_notify_enabled and self.telegram_bot_token and self.telegram_chat_id
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
