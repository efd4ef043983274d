"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockroom.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class InventorySettings(BaseSettings):
    """Ledger and purchase order behaviour."""

    model_config = SettingsConfigDict(env_prefix="INVENTORY_")

    default_reorder_point: int = 25
    purchase_order_prefix: str = "PO"

    # Bookkeeping categories for generated expense entries
    packaging_category: str = "Packaging Materials"
    product_category: str = "Stock Purchases"


class BookkeepingSettings(BaseSettings):
    """Bookkeeping gateway configuration."""

    model_config = SettingsConfigDict(env_prefix="BOOKKEEPING_")

    backend: Literal["local", "http"] = "local"
    base_url: str = "http://localhost:8100"
    api_key: str | None = None
    timeout: float = 10.0

    # Retry settings
    max_attempts: int = 3
    retry_delay: float = 0.5
    retry_multiplier: float = 2.0


class MarketplaceSettings(BaseSettings):
    """Marketplace order source (OAuth bearer client)."""

    model_config = SettingsConfigDict(env_prefix="MARKETPLACE_")

    base_url: str = "https://api.ebay.com"
    token_url: str = "https://api.ebay.com/identity/v1/oauth2/token"
    client_id: str | None = None
    client_secret: str | None = None
    scopes: list[str] = ["https://api.ebay.com/oauth/api_scope/sell.fulfillment.readonly"]
    marketplace_id: str = "EBAY_US"
    timeout: float = 30.0

    # Refresh access tokens this many seconds before they expire
    expiry_margin_seconds: int = 60


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Stockroom"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # None picks JSON outside development
    log_json: bool | None = None

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    bookkeeping: BookkeepingSettings = Field(default_factory=BookkeepingSettings)
    marketplace: MarketplaceSettings = Field(default_factory=MarketplaceSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
