"""Application settings using Pydantic Settings."""

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
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="pagecomments", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )

    # API Server
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=2668, description="API port")

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(default=10, description="Max Redis connections")
    redis_socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Redis connect timeout"
    )
    redis_retry_on_timeout: bool = Field(default=True, description="Retry on timeout")
    redis_health_check_interval: int = Field(
        default=30, description="Health check interval"
    )

    # Akismet
    akismet_key: str | None = Field(
        default=None,
        description="Akismet API key; moderation is disabled when unset",
    )
    akismet_blog_url: str = Field(
        default="https://localhost/",
        description="Site URL sent as the Akismet 'blog' field",
    )
    akismet_endpoint: str = Field(
        default="https://{key}.rest.akismet.com/1.1/comment-check",
        description="comment-check URL template, {key} is the API key",
    )
    akismet_timeout: float = Field(
        default=10.0, description="Akismet request timeout in seconds"
    )

    # Comments
    comments_key_namespace: str = Field(
        default="pagecomments", description="Prefix for every Redis key"
    )
    comments_page_size: int = Field(
        default=10, ge=1, description="Max approved comments returned per listing"
    )
    comments_allocation_max_attempts: int | None = Field(
        default=None,
        ge=1,
        description="Bound on id allocation attempts (None retries forever)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=False, description="Include caller info"
    )
    log_to_file: bool = Field(default=True, description="Write rotating log files")
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/health/live", "/health/ready"],
        description="Paths to exclude from request logging",
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="CORS origins")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST"], description="Allowed methods"
    )
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def akismet_configured(self) -> bool:
        """Check if spam classification is enabled."""
        return bool(self.akismet_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
