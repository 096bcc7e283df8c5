"""Core configuration management using Pydantic settings."""
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Valid log levels
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Telegram
    telegram_bot_token: str = ""

    # Narrative generation (optional, summaries are skipped without a key)
    gemini_api_key: Optional[str] = None
    gemini_primary_model: str = "gemini-2.5-pro"
    gemini_fallback_model: str = "gemini-2.5-flash"
    gemini_timeout_seconds: float = 60.0

    # Remote data provider
    provider_base_url: str = "https://www.handball.net"
    fetch_timeout_seconds: float = 10.0

    # Worker pool and cadence
    max_workers: int = 5
    scheduler_interval_seconds: float = 5.0
    dispatcher_interval_seconds: float = 0.5

    # Game timing (minutes)
    pre_game_start_minutes: int = 5
    recap_interval_minutes: int = 5
    regulation_half_minutes: int = 30

    # Post-game action delays (seconds after the final whistle)
    stats_delay_seconds: float = 1.0
    summary_delay_seconds: float = 2.0
    closing_delay_seconds: float = 4.0
    cleanup_delay_seconds: float = 30.0

    # Persistence
    data_dir: Path = Path("./data")
    seen_file: str = "seen_tickers.json"
    schedule_file: str = "scheduled_tickers.json"

    # Display
    timezone: str = "Europe/Berlin"
    source_code_url: str = "https://github.com/nambatu/handball.net-whatsapp-liveticker-bot/"

    # Logging
    log_level: str = "INFO"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        upper_v = v.upper()
        if upper_v not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}")
        return upper_v

    @field_validator('max_workers', 'recap_interval_minutes', 'regulation_half_minutes')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @property
    def seen_path(self) -> Path:
        return self.data_dir / self.seen_file

    @property
    def schedule_path(self) -> Path:
        return self.data_dir / self.schedule_file


# Global settings instance
settings = Settings()
