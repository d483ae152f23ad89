from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Funds Ledger API"
    database_url: str = "sqlite:///funds_ledger.db"
    log_level: str = "INFO"

    # Transfer scope
    transfer_max_attempts: int = 5
    transfer_backoff_base_seconds: float = 0.02
    transfer_backoff_max_seconds: float = 0.5
    transfer_timeout_seconds: float = 5.0

    # Rate limiting (per client, fixed window)
    rate_limit_window_seconds: float = 15 * 60
    rate_limit_max_requests: int = 100

    # Provisioning reward, in cents
    starting_balance_min: int = 100
    starting_balance_max: int = 1_000_000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LEDGER_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
