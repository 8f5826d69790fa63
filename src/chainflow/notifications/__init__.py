"""
Notifications - Workflow lifecycle sinks.

- NotificationSink: Protocol the executor calls
- NullNotifier / LoggingNotifier / CompositeNotifier: in-process sinks
- TelegramNotifier: Telegram Bot API transport
"""

from __future__ import annotations

from chainflow.config import Settings, get_settings

from .sink import CompositeNotifier, LoggingNotifier, NotificationSink, NullNotifier
from .telegram import TelegramNotifier


def build_notifier(settings: Settings | None = None) -> NotificationSink:
    """Build the configured sink: Telegram when enabled, otherwise logging only."""
    settings = settings or get_settings()
    if settings.telegram_enabled:
        return CompositeNotifier([
            LoggingNotifier(),
            TelegramNotifier(
                bot_token=settings.telegram_bot_token.get_secret_value(),
                chat_id=settings.telegram_chat_id,
                api_url=settings.telegram_api_url,
            ),
        ])
    return LoggingNotifier()


__all__ = [
    "NotificationSink",
    "NullNotifier",
    "LoggingNotifier",
    "CompositeNotifier",
    "TelegramNotifier",
    "build_notifier",
]
