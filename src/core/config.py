"""Service configuration via environment variables (prefix SHOOTOUT_) or a local .env file."""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHOOTOUT_", env_file=".env")

    database_url: str = "sqlite:///./shootout.db"
    sql_echo: bool = False

    log_level: str = "INFO"
    log_dir: Optional[str] = None
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"

    cors_origins: list[str] = ["http://localhost:3000"]

    # Used to build the link placed in challenge notifications
    app_base_url: str = "http://localhost:3000"
    email_notifications_enabled: bool = True
    push_notifications_enabled: bool = True

    leaderboard_size: int = 10

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
