"""Application settings using Pydantic Settings.

Values come from the environment (case-insensitive) or a local ``.env``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


Environment = Literal["development", "staging", "production", "testing"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """CourseMaster configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="coursemaster")
    app_version: str = Field(default="0.1.0")
    environment: Environment = Field(default="development")
    api_host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    api_port: int = Field(default=8000, description="Bind port for uvicorn")

    # Tokens are minted by the identity provider; only verification happens here
    auth_secret_key: str = Field(
        default="dev-jwt-secret-key-change-in-production-32chars!",
        min_length=32,
        description="HMAC key shared with the identity provider",
    )
    auth_algorithm: str = Field(default="HS256")
    auth_access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        description="Lifetime of tokens minted by create_access_token",
    )

    # Redis (course cache only; the API runs without it)
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_max_connections: int = Field(default=10)
    redis_socket_timeout: float = Field(default=5.0)
    redis_socket_connect_timeout: float = Field(default=5.0)
    redis_retry_on_timeout: bool = Field(default=True)
    redis_health_check_interval: int = Field(default=30, description="Seconds")

    # Cassandra
    cassandra_hosts: list[str] = Field(default=["localhost"])
    cassandra_port: int = Field(default=9042)
    cassandra_keyspace: str = Field(default="coursemaster")
    cassandra_username: str | None = Field(default=None)
    cassandra_password: str | None = Field(default=None)
    cassandra_protocol_version: int = Field(default=4)
    cassandra_connect_timeout: float = Field(default=10.0, description="Seconds")

    # Course catalog
    course_cache_ttl_seconds: int = Field(
        default=60, ge=0, description="TTL for course:<id> entries in Redis"
    )

    # Progress engine
    progress_max_write_attempts: int = Field(
        default=3,
        ge=1,
        description="Versioned enrollment writes tried before answering 409",
    )

    # Logging
    log_level: LogLevel = Field(default="DEBUG")
    log_format: Literal["json", "console"] = Field(default="console")
    log_include_caller_info: bool = Field(
        default=True, description="Add module, function and line to each event"
    )
    log_dir: str = Field(default="logs", description="Rotating JSON log files")
    log_file_max_bytes: int = Field(default=10 * 1024 * 1024)
    log_file_backup_count: int = Field(default=5)
    log_requests: bool = Field(default=True)
    log_exclude_paths: list[str] = Field(
        default=["/health"],
        description="Path prefixes without request_started/completed events",
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"])
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])
    cors_max_age: int = Field(default=600)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
