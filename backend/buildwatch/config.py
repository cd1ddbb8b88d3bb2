"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Build Watch"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Monitored site
    target_url: str = ""
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 MonitorBot/1.0"
    )
    request_timeout_seconds: float = 30.0
    script_concurrency: int = 20  # Max concurrent chunk downloads per run

    # Redis (state store + celery broker)
    redis_url: str = "redis://localhost:6379/0"
    state_key_prefix: str = ""
    run_lock_timeout_seconds: int = 300

    # Scheduling (crontab minute step, so it must divide the hour)
    check_interval_minutes: int = 5

    # Discord notification
    discord_webhook_url: str = ""
    notification_content: str = "📡 **The monitored site published a new build!**"
    notification_title: str = "🔄 Release briefing"
    notification_footer: str = "Build Watch"
    notification_color: int = 3447003

    # LLM summarization
    llm_provider: Literal["openai", "anthropic"] = "openai"
    llm_api_key: str | None = None
    llm_base_url: str | None = None  # OpenAI-compatible endpoint, e.g. https://api.deepseek.com
    llm_model: str = "deepseek-chat"
    llm_temperature: float = 0.3

    @field_validator("check_interval_minutes")
    @classmethod
    def interval_divides_hour(cls, v: int) -> int:
        if v < 1 or 60 % v != 0:
            raise ValueError("check_interval_minutes must be a divisor of 60 (1, 2, 3, 4, 5, 6, 10, 12, 15, 20, 30)")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
