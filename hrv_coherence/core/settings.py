from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="HRV_", protected_namespaces=()
    )

    app_name: str = "hrv-coherence"
    env: str = "local"
    log_level: str = "INFO"

    api_v1_prefix: str = "/v1"

    cors_allow_origins: list[str] = ["*"]
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    analysis_config_path: Path | None = None

    worker_request_timeout_seconds: float = 30.0

    quality_tick_enabled: bool = True
    quality_tick_seconds: float | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
