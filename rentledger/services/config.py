"""Application configuration from environment variables."""

from decimal import Decimal

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(
        default="sqlite:///./rentledger.db",
        description="SQLAlchemy connection string",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/server.log", description="Log file path")

    # Ledger
    share_total_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        description="Allowed deviation of a category's shares from 100%",
    )
    settlement_months: int = Field(
        default=12,
        ge=1,
        description="Number of monthly provisions a settled year is spread over",
    )

    # API
    api_title: str = Field(default="Rent Ledger API", description="API title")
    api_version: str = Field(default="0.1.0", description="API version")


# Global settings instance
settings = Settings()
