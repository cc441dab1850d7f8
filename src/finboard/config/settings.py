"""Application settings and configuration."""

from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".finboard"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FINBOARD_",
        extra="ignore",
    )

    app_name: str = "Finboard"
    app_version: str = "0.1.0"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    log_level: str = "INFO"
    # Also write finboard logs to <data_dir>/finboard.log
    log_to_file: bool = False

    # Local calendar used for "today", period boundaries and month ends
    timezone: str = "Australia/Sydney"
    default_display_currency: str = "AUD"

    # Price and exchange-rate caches
    price_cache_ttl_minutes: int = 15
    exchange_rate_cache_ttl_minutes: int = 60
    price_fetch_timeout_seconds: float = 10.0
    price_fetch_max_workers: int = 8
    provider_max_retries: int = 3
    provider_retry_initial_delay_seconds: float = 1.0

    # Upstream sources
    exchange_rate_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "exchange_rate_api_key",
            "FINBOARD_EXCHANGE_RATE_API_KEY",
            "EXCHANGE_RATE_API_KEY",
        ),
    )
    exchange_rate_base_url: str = "https://open.er-api.com/v6"
    exchange_rate_keyed_base_url: str = "https://v6.exchangerate-api.com/v6"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    http_timeout_seconds: float = 10.0

    # Serve deterministic offline prices/rates instead of hitting the network
    use_stub_providers: bool = False

    # Budget defaults
    payday_day: int = Field(default=14, ge=1, le=28)
    adjust_payday_for_weekends: bool = True
    expected_income_cents: int = 916853
    near_pace_margin: Decimal = Decimal("0.85")

    # Import behavior
    import_create_holdings: bool = True

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "finboard.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (used by tests and embedding apps)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
