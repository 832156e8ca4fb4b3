"""
Configuration settings for the Trip Inventory service.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Trip Inventory"
    api_version: str = "v1"
    debug: bool = True

    # Database Configuration (local SQLite file)
    database_url: str = "sqlite+aiosqlite:///./trips.db"
    db_echo: bool = False

    # Logging
    log_level: str = "INFO"

    # Display
    currency_symbol: str = "$"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
