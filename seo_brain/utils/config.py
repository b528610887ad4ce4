"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Claude API (text generation)
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"

    # Image generation backend
    IMAGE_API_URL: str = "http://localhost:8080"
    IMAGE_API_KEY: Optional[str] = None
    IMAGE_ASPECT_RATIO: str = "4:3"

    # Storage
    DATABASE_URL: Optional[str] = None
    REDIS_URL: str = "redis://localhost:6379/0"

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Storefront identity (used in schema markup and page URLs)
    SITE_URL: str = "https://gangrunprinting.com"
    BUSINESS_NAME: str = "GangRun Printing"
    PAGE_PATH_PREFIX: str = "/print"

    # Campaign generation
    TARGET_CITY_COUNT: int = 200
    BATCH_SIZE: int = 10
    BATCH_PAUSE_SECONDS: float = 0.0
    MAX_CONCURRENT_GENERATIONS: int = 10

    # Backend throughput (token buckets)
    LLM_REQUESTS_PER_SECOND: float = 10.0
    IMAGE_REQUESTS_PER_MINUTE: float = 30.0

    # Timeouts
    API_TIMEOUT: int = 120
    GENERATION_TIMEOUT_SECONDS: float = 300.0

    # Winner analysis
    PATTERN_CONFIDENCE: int = 85

    # Optional override for the city visual style table
    CITY_STYLES_PATH: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
