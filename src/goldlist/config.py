"""Configuration settings for the application."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Goldlist method constants
REVIEW_INTERVAL_DAYS = 14  # days between writing a page and distilling it
ROUNDS_PER_STAGE = 4
TOTAL_PAGES = 200  # one page per calendar day


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///goldlist.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class BotSettings:
    """Telegram bot settings used for review reminders."""
    token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    metrics_port: int = int(os.getenv("METRICS_PORT", "9090"))


@dataclass
class LearningSettings:
    """Goldlist method settings."""
    review_interval_days: int = REVIEW_INTERVAL_DAYS
    rounds_per_stage: int = ROUNDS_PER_STAGE
    total_pages: int = TOTAL_PAGES
    words_per_page: int = int(os.getenv("WORDS_PER_PAGE", "20"))
    daily_word_goal: int = int(os.getenv("DAILY_WORD_GOAL", "20"))


@dataclass
class NotificationSettings:
    """Notification settings."""
    enabled: bool = os.getenv("NOTIFICATIONS_ENABLED", "true").lower() == "true"
    reminder_hour: int = int(os.getenv("REMINDER_HOUR", "9"))
    check_interval: int = int(os.getenv("REMINDER_CHECK_INTERVAL", "300"))  # seconds


@dataclass
class ClockSettings:
    """Virtual clock settings for demos and manual testing."""
    offset_days: int = int(os.getenv("CLOCK_OFFSET_DAYS", "0"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_bot_settings() -> BotSettings:
    """Get bot settings."""
    return BotSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_notification_settings() -> NotificationSettings:
    """Get notification settings."""
    return NotificationSettings()


def get_clock_settings() -> ClockSettings:
    """Get clock settings."""
    return ClockSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    bot: BotSettings = field(default_factory=get_bot_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    notification: NotificationSettings = field(default_factory=get_notification_settings)
    clock: ClockSettings = field(default_factory=get_clock_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.learning.words_per_page < 1:
            raise ValueError("WORDS_PER_PAGE must be positive")

        if self.learning.daily_word_goal < 0:
            raise ValueError("DAILY_WORD_GOAL cannot be negative")

        if not 0 <= self.notification.reminder_hour <= 23:
            raise ValueError("REMINDER_HOUR must be between 0 and 23")

        if self.notification.check_interval < 1:
            raise ValueError("REMINDER_CHECK_INTERVAL must be positive")

        if self.clock.offset_days < 0:
            raise ValueError("CLOCK_OFFSET_DAYS cannot be negative")


# Create global settings instance
settings = Settings()
settings.validate()
