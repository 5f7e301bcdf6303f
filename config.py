"""
Configuration management for NestEgg.
Uses pydantic-settings for type-safe, centralized configuration.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Database
    database_url: str = "sqlite:///nestegg.db"
    db_echo: bool = False

    # Access
    dashboard_password: Optional[str] = None
    dashboard_password_hash: Optional[str] = None  # bcrypt hash or SHA-256 hex digest

    # Reporting
    reporting_currency: str = "EUR"
    reporting_timezone: str = "Europe/Paris"
    chart_date_format: str = "%d/%m/%Y"

    # Price source
    default_exchange_suffix: str = ".PA"  # Euronext Paris
    price_cache_ttl_seconds: float = 20.0
    price_rate_limit_calls: int = 30
    price_rate_limit_window_seconds: float = 60.0
    max_workers: int = 5

    log_level: str = "INFO"

    @property
    def is_password_configured(self) -> bool:
        """Check if a dashboard password (plain or hashed) is set."""
        return bool(self.dashboard_password or self.dashboard_password_hash)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
