"""
Configuration settings for the CookBook backend.

Loads environment variables from .env file and provides typed configuration.
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API Configuration
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins",
    )

    # Security Configuration
    SECRET_KEY: str = Field(
        default="5f1c0d8a3e7b49e2a6d4c9b8f0e1a2b3c4d5e6f708192a3b4c5d6e7f8091a2b3",
        description="Secret key for JWT",
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=60, description="Access token expiration time in minutes"
    )
    PASSWORD_RESET_EXPIRE_MINUTES: int = Field(
        default=15, description="Password reset token expiration time in minutes"
    )
    MIN_PASSWORD_LENGTH: int = Field(
        default=6, description="Minimum accepted password length"
    )
    AUTH_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Timeout for sign up / sign in calls"
    )

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite:///./data/cookbook.db", description="SQLite database URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False, description="Echo SQL queries (for debugging)"
    )
    BATCH_QUERY_LIMIT: int = Field(
        default=10, description="Maximum number of ids in a single 'in' query"
    )

    # Object Storage Configuration
    STORAGE_DIR: str = Field(
        default="./data/storage", description="Root directory for stored blobs"
    )
    STORAGE_BASE_URL: str = Field(
        default="http://localhost:8000/storage",
        description="Public URL prefix under which STORAGE_DIR is served",
    )
    RECIPE_IMAGES_PATH: str = Field(
        default="recipe_images", description="Storage folder for recipe images"
    )
    MAX_UPLOAD_SIZE: int = Field(
        default=5 * 1024 * 1024,  # 5 MB
        description="Maximum image upload size in bytes",
    )
    ALLOWED_EXTENSIONS: List[str] = Field(
        default=[".jpg", ".jpeg", ".png", ".webp"],
        description="Allowed file extensions for image uploads",
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    ENABLE_FILE_LOGGING: bool = Field(
        default=False, description="Enable logging to file"
    )
    LOG_DIR: str = Field(default="./logs", description="Directory for log files")


# Global settings instance
settings = Settings()
