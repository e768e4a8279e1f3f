from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration read from environment variables."""

    supabase_url: AnyHttpUrl = Field(..., alias="SUPABASE_URL")
    supabase_key: str = Field(..., alias="SUPABASE_KEY")
    supabase_timeout: float = Field(15.0, alias="SUPABASE_TIMEOUT")
    supabase_read_attempts: int = Field(
        3,
        alias="SUPABASE_READ_ATTEMPTS",
        description="Attempts for cabins/guests/settings reads; bookings are never retried",
    )

    redis_url: str = Field("redis://127.0.0.1:6379/0", alias="REDIS_URL")
    session_ttl_seconds: int = Field(3_600, alias="SESSION_TTL_SECONDS")
    use_redis_state_store: bool = Field(
        False,
        alias="USE_REDIS_STATE_STORE",
        description="Keep booking sessions in Redis instead of process memory",
    )

    app_env: Literal["dev", "prod", "test"] = Field("dev", alias="APP_ENV")
    api_prefix: str = "/v1"
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    include_debug: bool = Field(
        False,
        alias="INCLUDE_DEBUG",
        description="Adds the reference snapshot to session responses",
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    @property
    def rest_url(self) -> str:
        return f"{str(self.supabase_url).rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{str(self.supabase_url).rstrip('/')}/auth/v1"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
