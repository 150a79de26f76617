"""
Configuration Management for Move-Master

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here. Every setting has a default, so the
ledger can always start with no environment at all.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """
    Local persistence configuration.

    Each entity collection is stored under its own key. The file backend
    keeps one ``<key>.json`` file per key inside ``data_dir``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOVEMASTER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path(".movemaster"),
        description="Directory holding the persisted JSON collections"
    )
    key_prefix: str = Field(
        default="mm",
        min_length=1,
        description="Prefix for every storage key"
    )
    key_version: str = Field(
        default="v6",
        min_length=1,
        description="Version suffix for every storage key"
    )

    @field_validator("key_prefix", "key_version")
    @classmethod
    def validate_key_part(cls, v: str) -> str:
        """Key parts end up in file names; keep them to safe characters."""
        cleaned = v.strip()
        if not cleaned or not all(c.isalnum() or c in "-." for c in cleaned):
            raise ValueError(f"Invalid storage key part: {v!r}")
        return cleaned

    def key_for(self, collection: str) -> str:
        """Storage key for a collection, e.g. ``mm_jobs_v6``."""
        return f"{self.key_prefix}_{collection}_{self.key_version}"


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOVEMASTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    seed_on_first_run: bool = Field(
        default=True,
        description="Populate sample records when every collection is empty"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the structured logger"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus ``<name>_error``
    entries for sections that failed to load.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
