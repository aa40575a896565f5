"""
Configuration Management for Pocket Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which backends exist and ensures all
required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )
    
    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    
    # Sheet names within the spreadsheet
    entries_sheet_name: str = Field(
        default="Entries",
        description="Name of the sheet for ledger entries"
    )
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Name of the sheet for accounts"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the sheet for categories"
    )
    
    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class ReconciliationSettings(BaseSettings):
    """Balance reconciliation tuning."""
    
    model_config = SettingsConfigDict(
        env_prefix="RECONCILIATION_",
        extra="ignore"
    )
    
    # Account adjustment retry policy
    adjustment_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times the account adjustment is tried before "
                    "the mutation is reported as inconsistent"
    )
    adjustment_backoff_min_seconds: float = Field(
        default=0.2,
        ge=0.0,
        description="Minimum wait between adjustment attempts"
    )
    adjustment_backoff_max_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Maximum wait between adjustment attempts"
    )
    
    max_batch_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of entries accepted in one import batch"
    )
    
    @model_validator(mode='after')
    def validate_backoff(self) -> 'ReconciliationSettings':
        if self.adjustment_backoff_max_seconds < self.adjustment_backoff_min_seconds:
            raise ValueError("Backoff max cannot be below backoff min")
        return self


class AppSettings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from environment variables and .env file.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which storage backend to use"
    )
    status_history_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="How many status events are kept for display"
    )


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
    
    # Note: These are loaded lazily to allow partial configuration
    
    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()
    
    @property
    def reconciliation(self) -> ReconciliationSettings:
        return ReconciliationSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}
    
    settings = get_settings()
    
    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)
    
    try:
        _ = settings.reconciliation
        results["reconciliation"] = True
    except Exception as e:
        results["reconciliation"] = False
        results["reconciliation_error"] = str(e)
    
    # Sheets settings only matter when that backend is selected
    if results["app"] and settings.app.storage_backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)
    
    return results
