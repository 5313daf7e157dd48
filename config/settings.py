"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Pricing
    calc_method: str = Field(
        default="BJERKSUNDSTENSLAND02",
        description="Default pricing method of the profit calculator",
    )
    days_per_year: float = Field(
        default=365.0,
        gt=0,
        description="Calendar days per year for time to expiry and theta scaling",
    )

    # Trading costs
    option_trade_cost: float = Field(
        default=0.0,
        ge=0,
        description="Commission per option contract traded",
    )
    equity_trade_cost: float = Field(
        default=0.0,
        ge=0,
        description="Commission per equity trade",
    )
    cost_basis: float | None = Field(
        default=None,
        gt=0,
        description="Per share cost basis of held stock for covered calls",
    )

    # Strategy analysis
    vert_depth: int = Field(
        default=3,
        ge=1,
        description="Number of neighbouring strikes paired into verticals",
    )
    single_call_mode: Literal["long", "covered"] = Field(
        default="long",
        description="How SINGLE call candidates are traded",
    )
    batch_max_workers: int = Field(
        default=4,
        ge=1,
        description="Thread pool size of the batch analyzer",
    )

    # API Settings
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings

    Example:
        >>> settings = get_settings()
        >>> settings.calc_method
        'BJERKSUNDSTENSLAND02'
    """
    return Settings()
