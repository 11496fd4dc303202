"""Configuration settings for the listing sync pipeline."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field

from ..exceptions import ConfigurationError


# Account that owns scraped, unclaimed listings until a landlord claims them
DEFAULT_SYSTEM_LANDLORD_ID = "a3930810-91d1-4f55-84b8-81a70291a446"

_ENV_FILE = {"extra": "ignore", "env_file": ".env", "env_file_encoding": "utf-8"}


class DatabaseSettings(BaseSettings):
    """Property store configuration."""

    database_url: Optional[str] = Field(default=None)
    database_echo: bool = Field(default=False)

    model_config = _ENV_FILE


class StorageSettings(BaseSettings):
    """Object store configuration."""

    storage_bucket: Optional[str] = Field(default=None)
    storage_credentials_path: Optional[str] = Field(default=None)

    model_config = _ENV_FILE


class GeocodingSettings(BaseSettings):
    """Geocoding API configuration."""

    google_maps_api_key: Optional[str] = Field(default=None)
    geocoding_endpoint: str = Field(default="https://maps.googleapis.com/maps/api/geocode/json")

    # Fixed pause after every geocode call within a batch
    geocoding_delay_seconds: float = Field(default=0.1)

    # None keeps the HTTP client's default (no timeout)
    geocoding_timeout: Optional[float] = Field(default=None)

    model_config = _ENV_FILE


class ImportSettings(BaseSettings):
    """Import and sync configuration."""

    system_landlord_id: str = Field(default=DEFAULT_SYSTEM_LANDLORD_ID)
    audit_log_dir: str = Field(default="./logs")

    model_config = _ENV_FILE


class APISettings(BaseSettings):
    """API configuration."""

    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_debug: bool = Field(default=False)

    model_config = _ENV_FILE


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: str = Field(default="development")

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None)

    # Component settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    imports: ImportSettings = Field(default_factory=ImportSettings)
    api: APISettings = Field(default_factory=APISettings)

    model_config = _ENV_FILE

    def require_store_config(self, with_storage: bool = True) -> None:
        """Fail fast when the store or object store is not configured.

        Args:
            with_storage: Also require the object store bucket

        Raises:
            ConfigurationError: If DATABASE_URL or STORAGE_BUCKET is missing
        """
        missing = []
        if not self.database.database_url:
            missing.append("DATABASE_URL")
        if with_storage and not self.storage.storage_bucket:
            missing.append("STORAGE_BUCKET")

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


def get_settings() -> Settings:
    """Load a fresh settings instance from the environment."""
    return Settings()


# Global settings instance
settings = Settings()
