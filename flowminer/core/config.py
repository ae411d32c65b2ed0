"""Application configuration using Pydantic Settings v2.

Loads configuration from environment variables with .env file support.
Mining and matching policy constants live here so they can be tuned
without touching the algorithms; the algorithm modules receive them
through their own frozen config objects.
"""

from __future__ import annotations

import functools
import json
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """FlowMiner application settings.

    Configuration is loaded from environment variables.
    A .env file in the project root is also read if present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    app_name: str = "FlowMiner"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # ── PostgreSQL ───────────────────────────────────────────────
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "flowminer"
    postgres_user: str = "flowminer"
    postgres_password: str = "flowminer_dev_password"
    database_url: str | None = None
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_pool_recycle_seconds: int = 300

    # ── Backend ──────────────────────────────────────────────────
    cors_origins: list[str] = ["http://localhost:3000"]

    # ── Sequence mining ──────────────────────────────────────────
    mining_lookback_days: int = 7
    mining_max_events: int = 10_000
    mining_min_support: int = 3
    mining_min_sequence_length: int = 3
    mining_max_sequence_length: int = 5
    mining_min_run_length: int = 3
    mining_fetch_timeout_seconds: float = 30.0
    mining_batch_concurrency: int = 1
    mining_ignored_domains: list[str] = []

    # ── Template matching ────────────────────────────────────────
    matching_fuzzy_threshold: float = 0.7
    matching_support_weight: float = 0.7
    matching_coverage_weight: float = 0.3
    matching_very_new_user_days: int = 3
    matching_very_new_user_multiplier: float = 0.5
    matching_new_user_days: int = 7
    matching_new_user_multiplier: float = 0.7

    # ── Template suggestions ─────────────────────────────────────
    suggestion_default_days: int = 7
    suggestion_max_days: int = 30
    suggestion_default_limit: int = 5
    suggestion_max_limit: int = 10
    suggestion_event_limit: int = 1000

    @field_validator("cors_origins", "mining_ignored_domains", mode="before")
    @classmethod
    def parse_string_list(cls, v: Any) -> list[str]:
        """Parse a list setting from a JSON string, a comma separated string, or a list."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(item) for item in parsed]
            except (json.JSONDecodeError, TypeError):
                return [item.strip() for item in v.split(",") if item.strip()]
        if isinstance(v, list):
            return [str(item) for item in v]
        return []

    @model_validator(mode="after")
    def build_derived_urls(self) -> Settings:
        """Build database_url from components if not set."""
        if not self.database_url:
            self.database_url = (
                f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
                f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
            )
        return self


@functools.lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()
