"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # COLLECTIONS
    # ===================
    orders_table: str = Field(
        default="planning_orders",
        description="Table holding planning orders (keyed by order_id)"
    )
    lots_table: str = Field(
        default="tracked_lots",
        description="Table holding tracked lots (keyed by lot_number)"
    )

    # ===================
    # LOT IDENTITY
    # ===================
    manual_lot_min_length: int = Field(
        default=10,
        ge=1,
        le=32,
        description="Minimum length of a manually entered lot number"
    )
    lot_number_retries: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Attempts to claim a generated lot number before giving up"
    )

    # ===================
    # FLOOR BEHAVIOUR
    # ===================
    hold_overdue_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Days a lot may sit in Hold before it is reported as overdue"
    )
    auto_complete_orders: bool = Field(
        default=True,
        description="Mark an order completed once its finished lots reach plan"
    )
    dashboard_stations: list[str] = Field(
        default=[
            "BH11", "BH12", "BH15", "BH16", "BH17", "BH18", "BH31",
            "Mazak", "Nabewerking",
        ],
        description="Stations always shown on the dashboard, even without data"
    )
    metrics_max_age_seconds: float = Field(
        default=10.0,
        ge=0,
        le=3600,
        description="Seconds before the live monitor re-reads the store to catch other writers"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
