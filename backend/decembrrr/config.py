# backend/decembrrr/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./decembrrr.db"
    app_version: str = "0.1.0"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Remote ledger authority (PostgREST-style rpc endpoint) ----
    ledger_rpc_url: str | None = None
    ledger_rpc_key: str | None = None
    ledger_rpc_timeout_seconds: float = 20.0

    # ---- Calendar ----
    default_class_timezone: str = "UTC"
    default_collection_days: list[int] = [1, 2, 3, 4, 5]
    default_daily_amount: float = 10.0

    # ---- Member balance tiers ----
    low_balance_threshold: float = 50.0

    # ---- Daily deduction trigger ----
    deduction_timezone: str = "Asia/Manila"
    deduction_hour: int = 18
    deduction_minute: int = 0

    # ---- Celery ----
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("CONFIG: cors_allow_origins wildcard is not allowed in prod")
            if not self.ledger_rpc_url:
                raise ValueError("CONFIG: ledger_rpc_url must be set in prod")
            if not self.ledger_rpc_key:
                raise ValueError("CONFIG: ledger_rpc_key must be set in prod")

        bad_days = [d for d in self.default_collection_days if int(d) < 1 or int(d) > 7]
        if bad_days or not self.default_collection_days:
            raise ValueError("CONFIG: default_collection_days must be ISO weekdays 1..7")

    @property
    def is_local(self) -> bool:
        return (self.app_env or "local").strip().lower() == "local"


settings = Settings()
