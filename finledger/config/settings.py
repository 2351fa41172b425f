"""
Configuration Management for FinLedger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine horizons live here rather than as literals in the algorithms, so
the materialization window and the averaging window are visible in one place.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Recurrence and aggregation engine configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="FINLEDGER_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Materialization window
    lookback_months: int = Field(
        default=12,
        ge=0,
        le=120,
        description="How many months before today the materializer backfills"
    )
    lookahead_months: int = Field(
        default=13,
        ge=1,
        le=120,
        description="Exclusive number of months after today the materializer generates"
    )
    
    # Aggregation
    rolling_window_months: int = Field(
        default=12,
        ge=1,
        le=120,
        description="Trailing complete months used by the rolling average (fixed divisor)"
    )
    projection_months: int = Field(
        default=4,
        ge=1,
        le=24,
        description="Number of months in the forward projection, current month included"
    )
    
    # Reserved categories
    unassigned_category_id: str = Field(
        default="cat-unassigned",
        min_length=1,
        description="Category used for transactions whose category was deleted"
    )
    income_category_ids: str = Field(
        default="cat-income",
        description="Comma-separated list of reserved income-only category ids"
    )
    
    @field_validator('income_category_ids')
    @classmethod
    def strip_income_ids(cls, v: str) -> str:
        return ",".join(part.strip() for part in v.split(",") if part.strip())
    
    @property
    def income_category_list(self) -> list[str]:
        """Get reserved income category ids as a list."""
        return [cid for cid in self.income_category_ids.split(",") if cid]
    
    @property
    def administrative_category_ids(self) -> frozenset[str]:
        """Categories excluded from budget tracking and projections."""
        return frozenset([self.unassigned_category_id, *self.income_category_list])


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
    
    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )
    json_logs: bool = Field(
        default=True,
        description="Render log lines as JSON (False renders for the console)"
    )
    
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.strip().upper()
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
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
    def engine(self) -> EngineSettings:
        return EngineSettings()
    
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
        _ = settings.engine
        results["engine"] = True
    except Exception as e:
        results["engine"] = False
        results["engine_error"] = str(e)
    
    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)
    
    return results
