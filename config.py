"""
Configuration module for the Habit Reminder Bot.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.constants import (
    AUTO_DISMISS_SECONDS,
    DAILY_RESYNC_TIME,
    DEFAULT_GROUPING_MIN_COUNT,
    PERMISSION_PROMPT_TIMEOUT_SECONDS,
    TIME_OF_DAY_PATTERN,
)

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram Bot
    bot_token: Optional[str] = None
    owner_chat_id: Optional[int] = None  # Chat that receives reminders; bound on /start when unset
    app_url: Optional[str] = None  # Link sent when a reminder is opened

    # Reminder scheduling
    timezone: str = "Europe/Prague"
    reminder_grouping_enabled: bool = True
    reminder_grouping_min_count: int = Field(default=DEFAULT_GROUPING_MIN_COUNT, ge=1)
    reminder_grouping_by_type: bool = True
    daily_resync_time: str = Field(default=DAILY_RESYNC_TIME, pattern=TIME_OF_DAY_PATTERN)

    # Notification delivery
    notification_auto_dismiss_seconds: float = Field(default=AUTO_DISMISS_SECONDS, gt=0)
    notification_permission_timeout_seconds: float = Field(
        default=PERMISSION_PROMPT_TIMEOUT_SECONDS, gt=0
    )
    notifications_granted: bool = False  # Skip the opt-in prompt for the owner chat

    # Habit data seed (JSON with "habits" and "vacation_periods")
    habits_file: Optional[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"  # development, staging, production

    # Webhook Configuration
    bot_webhook_url: Optional[str] = (
        None  # Full webhook URL for bot (e.g., https://yourdomain.com/webhook/telegram)
    )

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = "bot.log"
    log_dir: str = "logs"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required_fields = ["bot_token"]

        missing = []
        for field in required_fields:
            value = getattr(self, field, None)

            if not value:
                missing.append(field)
                continue

            # Check for placeholder values
            if str(value).lower().startswith("your_"):
                missing.append(field)

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
