"""Application configuration module.

This module contains settings for the link shortener,
loaded from environment variables with appropriate defaults.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class EnvironmentType(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with defaults.

    Settings are loaded from environment variables, with fallback to
    values in .env file if present, and finally to the default values
    specified here.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment setting
    ENVIRONMENT: EnvironmentType = EnvironmentType.DEVELOPMENT

    # App Information
    APP_NAME: str = "Shortlink"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Short-code allocation and redirect service"

    # API Configuration
    BASE_URL: str = "http://localhost:8000"  # Used for generating short URLs
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # CORS settings
    CORS_ORIGINS: Union[List[str], str] = ["*"]

    # Short code allocation
    CODE_LENGTH: int = 6
    CODE_FALLBACK_LENGTH: int = 8
    CODE_MAX_ATTEMPTS: int = 10
    CODE_MIN_LENGTH: int = 3
    CODE_MAX_LENGTH: int = 20

    # Redirect behaviour
    REDIRECT_CACHE_MAX_AGE: int = 3600  # seconds, sent as public Cache-Control
    CLICK_COUNT_FUNCTION: str = "increment_click_count"

    # Edge adapter
    EDGE_CORS_ALLOW_HEADERS: str = "authorization, x-client-info, apikey, content-type"

    # PostgreSQL settings
    POSTGRES_SERVER: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="shortlink")
    DATABASE_URL: Optional[str] = None  # Full async URL, overrides the components above

    # PostgreSQL pool settings
    POSTGRES_POOL_SIZE: int = 20
    POSTGRES_POOL_MAX_OVERFLOW: int = 10
    POSTGRES_POOL_TIMEOUT: int = 30
    POSTGRES_POOL_RECYCLE: int = 300
    DB_ECHO: bool = False

    # Logging configuration
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILENAME: str = "app.log"
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"
    LOG_FORMAT: str = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{line} | {message}"
    LOG_JSON: bool = True
    LOG_TO_FILE: bool = True

    @field_validator("CORS_ORIGINS")
    def validate_list_or_string(cls, v: Union[List[str], str]) -> List[str]:
        """Convert comma-separated string to list if needed."""
        if isinstance(v, str):
            if not v.strip():
                return []
            if v == "*":
                return ["*"]
            return [item.strip() for item in v.split(",")]
        return v

    @field_validator("CODE_MIN_LENGTH")
    def validate_min_code_length(cls, v: int) -> int:
        if v < 1:
            raise ValueError("CODE_MIN_LENGTH must be at least 1")
        return v

    @computed_field
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Construct the SQLAlchemy database URI from settings or use override."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @computed_field
    def SYNC_DATABASE_URI(self) -> str:
        """Synchronous driver URI, used by Alembic."""
        return str(self.SQLALCHEMY_DATABASE_URI).replace("+asyncpg", "+psycopg").replace("+aiosqlite", "")


# Create a singleton instance of the settings
settings = Settings()
