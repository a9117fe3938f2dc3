"""
Group-Buy Statistics Engine
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""
    
    model_config = SettingsConfigDict(env_prefix="")
    
    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")
    
    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate renderer name"""
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class StatisticsSettings(BaseSettings):
    """Aggregation engine tuning"""
    
    model_config = SettingsConfigDict(env_prefix="STATS_")
    
    currency_precision: int = Field(default=2, ge=0, description="Decimal places kept at every money combination")
    ranking_size: int = Field(default=10, ge=1, description="Top-N size for ranking lists")
    comparison_window_days: int = Field(default=15, ge=1, description="Period-over-period window length")
    default_page_size: int = Field(default=10, ge=1, description="Default report page size")
    max_page_size: int = Field(default=100, ge=1, description="Largest accepted page size")
    max_report_entities: int = Field(
        default=5000,
        ge=1,
        description="Groups materialized in memory before a scaling warning is logged",
    )
    validate_input_rows: bool = Field(default=True, description="Check the row filter contract at the boundary")


class Settings(BaseSettings):
    """
    Main Application Settings
    
    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Application
    app_name: str = Field(default="groupbuy-stats", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")
    
    # Version
    version: str = Field(default="1.0.0", description="Application version")
    
    # Subsystem configurations
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    statistics: StatisticsSettings = Field(default_factory=StatisticsSettings)
    
    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Uses LRU cache to ensure settings are only loaded once.
    
    Returns:
        Settings: Application settings instance
    """
    return Settings()
