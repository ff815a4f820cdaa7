"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup; if a setting is malformed, the app fails fast with a clear
error message.

Usage:
    from verifiable_escrow.config import get_settings
    settings = get_settings()
    print(settings.database_url)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the escrow service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    mcp_enabled: bool = True
    # Comma-separated; "*" allows any origin.
    cors_origins: str = "*"

    # --- Database ---
    # SQLite for local runs; point at postgresql+asyncpg://... in production.
    database_url: str = "sqlite+aiosqlite:///./escrow.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- Accounts ---
    null_address: str = "SP000000000000000000002Q6VF78"
    custody_account: str = "SP000000000000000000000ESCROW"
    native_currency: str = "STX"

    # --- Registry Defaults ---
    default_creation_fee: int = Field(500, ge=0)
    default_currencies: str = "STX,USD,BTC"

    # --- Capacity Limits ---
    max_escrows: int = Field(10_000, gt=0)
    max_currencies: int = Field(10, gt=0)
    max_currency_code_length: int = 20
    max_escrows_per_sender: int = Field(100, gt=0)
    max_condition_params_bytes: int = Field(1024, gt=0)
    max_signers: int = Field(10, gt=0)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def default_currency_list(self) -> list[str]:
        """Parse comma-separated default currencies into a list."""
        if not self.default_currencies:
            return []
        return [c.strip() for c in self.default_currencies.split(",") if c.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
