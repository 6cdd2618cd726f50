"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from inventory_ledger.domain.models.enums import OversellPolicy


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".inventory-ledger"


class Settings(BaseSettings):
    """Ledger configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Inventory Valuation Ledger"
    app_version: str = "0.1.0"

    # Data directory (the default SQLite file lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None
    sql_echo: bool = False

    # Calendar used to bucket movements into daily snapshots
    business_timezone: str = "US/Eastern"

    # Ledger behavior
    lock_timeout_seconds: float = 5.0
    oversell_policy: OversellPolicy = OversellPolicy.REJECT
    log_level: str = "INFO"
    log_file: Optional[str] = None  # relative to data_dir; stdout only when unset

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "inventory.db"
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
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
