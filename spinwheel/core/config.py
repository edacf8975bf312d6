from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    internal_api_token: str = Field(
        default="dev_internal_token_change_me",
        alias="INTERNAL_API_TOKEN",
    )
    internal_api_allowlist: str = Field(
        default="127.0.0.1/32,::1/128",
        alias="INTERNAL_API_ALLOWLIST",
    )
    internal_api_trusted_proxies: str = Field(default="", alias="INTERNAL_API_TRUSTED_PROXIES")

    token_validity_hours: int = Field(default=48, ge=1, alias="TOKEN_VALIDITY_HOURS")
    token_code_length: int = Field(default=12, ge=6, le=32, alias="TOKEN_CODE_LENGTH")
    spin_rate_limit_window_seconds: int = Field(
        default=60,
        ge=1,
        alias="SPIN_RATE_LIMIT_WINDOW_SECONDS",
    )
    spin_rate_limit_max_attempts: int = Field(
        default=5,
        ge=1,
        alias="SPIN_RATE_LIMIT_MAX_ATTEMPTS",
    )
    seed_prizes_on_startup: bool = Field(default=True, alias="SEED_PRIZES_ON_STARTUP")

    database_url: str = Field(alias="DATABASE_URL")
    redis_url: str = Field(alias="REDIS_URL")

    celery_broker_url: str = Field(alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(alias="CELERY_RESULT_BACKEND")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
