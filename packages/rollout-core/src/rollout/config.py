"""Rollout configuration via environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class RolloutSettings(BaseSettings):
    """All configuration loaded from ROLLOUT_* env vars or .env file."""

    # Audit
    audit_retention: int = 100

    # Persistence
    backend: Literal["memory", "sqlite", "redis"] = "memory"
    db_path: str = "data/rollout.db"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Bootstrap catalog (bundled default when unset)
    seed_file: str | None = None

    # Brand switching
    brand_propagation_delay_seconds: float = 0.5

    # Confirmation gate for requires_confirmation flags
    enforce_confirmation: bool = False

    # HTTP admin surface
    admin_token: str = "dev-token-change-me"
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "ROLLOUT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
