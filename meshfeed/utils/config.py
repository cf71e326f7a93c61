"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root, so .env is found regardless of the working directory
_PROJECT_ROOT = Path(__file__).parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bluesky credentials (only the authenticated provider needs them)
    bluesky_identifier: str = Field(default="", description="Bluesky handle or DID")
    bluesky_app_password: str = Field(default="", description="Bluesky app password")

    # Aggregation
    archive_query: str = Field(default="#meshArchive", description="Search query for every provider")
    session_ttl_minutes: int = Field(
        default=30, description="Session lifetime when the login response has no expiry"
    )
    request_timeout_seconds: float = Field(default=15.0, description="Outbound HTTP timeout")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; MeshArchiveBot/1.0; +https://github.com/eilseq/p5js-editor)",
        description="User-Agent sent to every upstream",
    )

    # HTTP server
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, description="Bind port")

    # Feed consumer
    archive_url: str = Field(
        default="http://localhost:8080/api/archive", description="Aggregator endpoint for the consumer"
    )
    page_size: int = Field(default=30, description="Posts requested per page by the consumer")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
