"""
Application settings and configuration management
Uses Pydantic Settings for environment variable handling and validation
"""

from functools import lru_cache
from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource
import json

import pytz


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application
    app_name: str = "Time Tool Server"
    app_version: str = Field(default="1.0.0", description="Version reported by the service")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Render logs as JSON instead of console output")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Time resolution
    default_timezone: str = Field(
        default="UTC",
        description="Timezone that natural-language time descriptions are interpreted in"
    )

    # CORS
    allowed_origins_str: str = Field(
        default='["http://localhost:3000","http://127.0.0.1:3000"]',
        validation_alias="ALLOWED_ORIGINS",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_parse_none_str="null",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to exclude .env file loading"""
        # Only use init_settings and env_settings, skip dotenv_settings
        return init_settings, env_settings, file_secret_settings

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, v):
        """
        Any IANA zone is accepted. Date-only boundaries are reported as UTC
        dates, which lag the local date by one day in zones ahead of UTC+12.
        """
        try:
            return pytz.timezone(v).zone
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def allowed_origins(self) -> List[str]:
        """Parse and return allowed_origins as a list"""
        raw = self.allowed_origins_str.strip()
        # Try JSON parsing first
        if raw.startswith('[') and raw.endswith(']'):
            try:
                return json.loads(raw)
            except (json.JSONDecodeError, ValueError):
                pass
        # Fall back to comma-separated
        if ',' in raw:
            return [origin.strip() for origin in raw.split(",") if origin.strip()]
        # Single value
        if raw:
            return [raw]
        # Default fallback
        return ["http://localhost:3000", "http://127.0.0.1:3000"]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings
    Uses lru_cache to avoid reading environment variables multiple times
    """
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache. Used primarily for testing.
    After calling this, the next call to get_settings() will
    create a new Settings instance with fresh environment variables.
    """
    get_settings.cache_clear()
