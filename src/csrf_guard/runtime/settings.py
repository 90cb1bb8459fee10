"""Configuration for the CSRF token lifecycle."""

from __future__ import annotations

import logging
from datetime import timedelta

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CsrfSettings(BaseSettings):
    """Token lifetimes and sweeper cadence resolved from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    token_ttl_minutes: float = Field(default=60.0, gt=0, alias="CSRF_TOKEN_TTL_MINUTES")
    consume_grace_ms: int = Field(
        default=5000,
        ge=0,
        alias="CSRF_CONSUME_GRACE_MS",
        description="How long a consumed token is kept to report replays.",
    )
    sweep_interval_seconds: float = Field(
        default=600.0, gt=0, alias="CSRF_SWEEP_INTERVAL_SECONDS"
    )
    store_shards: int = Field(default=16, gt=0, alias="CSRF_STORE_SHARDS")
    sweeper_enabled: bool = Field(default=True, alias="CSRF_SWEEPER_ENABLED")

    @property
    def consume_grace(self) -> timedelta:
        return timedelta(milliseconds=self.consume_grace_ms)

    @classmethod
    def load(cls) -> CsrfSettings:
        instance = cls()
        logger = logging.getLogger("csrf_guard.settings")
        logger.info("csrf settings loaded: %r", instance)
        return instance


__all__ = ["CsrfSettings"]
