"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Property Portfolio Tracker"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Projection defaults
    default_max_lvr: float = 0.80
    default_growth_rate_bp: int = 400
    share_annual_return: float = 7.0
    max_projection_years: int = 50

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
