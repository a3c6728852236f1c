"""
Configuration Management for Monetyz

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage keys live here too, so the on-device layout can be read in one place
and tests can point the local store at a temporary file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LocalStorageSettings(BaseSettings):
    """On-device key-value storage configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="MONETYZ_LOCAL_",
        extra="ignore"
    )
    
    path: Path = Field(
        default=Path("~/.monetyz/storage.json"),
        description="JSON file holding the local key-value namespace"
    )
    transactions_key: str = Field(
        default="jft:txs:v1",
        description="Key of the JSON-encoded transaction list"
    )
    rules_key: str = Field(
        default="monetyz_category_rules_v1",
        description="Key of the JSON-encoded category rules"
    )
    accounts_key: str = Field(
        default="monetyz_accounts_v1",
        description="Key of the JSON-encoded signed-out account registry"
    )
    migration_flag_prefix: str = Field(
        default="txs_migrated_",
        description="Prefix of the per-identity migration flag key"
    )
    
    @property
    def resolved_path(self) -> Path:
        return self.path.expanduser()


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote storage configuration."""
    
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
    transactions_sheet_name: str = Field(
        default="txs",
        description="Name of the sheet for transaction rows"
    )
    accounts_sheet_name: str = Field(
        default="accounts",
        description="Name of the sheet for account rows"
    )
    
    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before signing in."
            )
        return v


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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for emitted log lines"
    )
    
    # Aggregation
    breakdown_top_n: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Number of categories shown before collapsing into 'Others'"
    )
    default_category: str = Field(
        default="Uncategorized",
        min_length=1,
        description="Category used when income/expense has none"
    )
    
    # Accounts
    default_accounts: str = Field(
        default="Main,Uni,Gear",
        description="Comma-separated seed accounts, first one is primary"
    )
    
    @property
    def default_accounts_list(self) -> list[str]:
        """Get seed accounts as a list."""
        return [name.strip() for name in self.default_accounts.split(",") if name.strip()]


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
    
    # Sub-settings are loaded lazily so signed-out use needs no remote config
    
    @property
    def local(self) -> LocalStorageSettings:
        return LocalStorageSettings()
    
    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()
    
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
    
    for name in ("local", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
