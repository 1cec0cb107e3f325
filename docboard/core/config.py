"""Application configuration with validation."""

from enum import Enum
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("json", "text")


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Settings that are acceptable in development but not in production."""


class Settings(BaseSettings):
    """Runtime settings for the API process.

    Every field can be overridden by the upper-cased environment variable
    of the same name (``CONTENT_ROOT``, ``DATABASE_URL``...) or via ``.env``.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development or production; production refuses unsafe settings"
    )

    cors_allowed_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of browser origins allowed to call the API"
    )

    # Server (python -m docboard)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False, description="Restart on code changes (development only)")

    # Database
    database_url: str = Field(
        default="sqlite:///./docboard.db",
        description="SQLAlchemy URL; sqlite for development, postgresql in production"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_timeout: int = Field(default=30)
    db_pool_recycle: int = Field(default=1800)

    # Storage
    content_root: str = Field(
        default="./data/content",
        description="Root directory holding the current body of every document"
    )
    upload_dir: str = Field(
        default="./data/uploads",
        description="Directory for uploaded images and attachments (served at /uploads)"
    )
    max_markdown_bytes: int = Field(
        default=2 * 1024 * 1024,
        description="Largest accepted markdown upload"
    )
    max_attachment_bytes: int = Field(
        default=50 * 1024 * 1024,
        description="Largest accepted single attachment"
    )
    max_image_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Largest accepted editor image upload"
    )

    # Listing
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # Category tree behaviour
    cascade_category_depth: bool = Field(
        default=False,
        description="Recompute depth for the whole subtree when a category is reparented"
    )
    seed_categories: bool = Field(
        default=True,
        description="Ensure the default category set exists on startup"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root logger level"
    )
    log_format: str = Field(
        default="json",
        description="json (one object per line) or text"
    )

    def get_cors_origins(self) -> List[str]:
        """Parse the comma-separated origin list. Wildcards are rejected."""
        origins = [part.strip() for part in self.cors_allowed_origins.split(",")]
        origins = [o for o in origins if o]
        if "*" in origins:
            raise ValueError("CORS_ALLOWED_ORIGINS must list origins explicitly, '*' is refused")
        return origins

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(_LOG_FORMATS)}")
        return fmt

    def validate_production_config(self) -> None:
        """Fail startup in production when storage or CORS settings are unsafe.

        In development the same findings are tolerated; main.py logs them.

        Raises:
            ConfigurationError: If production config is unsafe.
        """
        problems: List[str] = []

        local = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if local:
            problems.append(f"CORS_ALLOWED_ORIGINS contains local origins {local}")

        for name in ("content_root", "upload_dir"):
            if not Path(getattr(self, name)).is_absolute():
                problems.append(f"{name.upper()} is not an absolute path")

        if problems and self.environment == Environment.PRODUCTION:
            raise ConfigurationError("unsafe production settings: " + "; ".join(problems))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
