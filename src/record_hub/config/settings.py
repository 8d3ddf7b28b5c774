"""
Configuration management for RecordHub.

This module provides environment-based configuration using Pydantic BaseSettings.
Settings are only read at the composition root: adapters receive explicit
config values (``RelationalConfig`` / ``KeyValueConfig``) through their
constructors, so no process-wide mutable configuration is consulted during a
lookup.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("RECORD_HUB_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

BackendName = Literal["relational", "key_value", "key_value_async"]


class RelationalConfig(BaseModel):
    """Connection settings for the relational adapter."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1, description="SQLAlchemy database URL")
    connect_timeout: int = Field(default=10, ge=1, description="Seconds")
    max_retries: int = Field(default=3, ge=1)
    retry_backoff_base: float = Field(default=2.0, ge=0)
    echo: bool = False


class KeyValueConfig(BaseModel):
    """Connection settings for the key-value adapters."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(default="redis://localhost:6379/0", min_length=1)
    key_prefix: str = ""
    socket_timeout: float = Field(default=5.0, gt=0)
    max_workers: int = Field(default=4, ge=1)


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are loaded with the RECORD_HUB_ prefix, e.g.
    RECORD_HUB_BACKEND=key_value selects the Redis adapter. ENVIRONMENT and
    LOG_LEVEL are also read without prefix.
    """

    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        validation_alias="ENVIRONMENT",
        description="Deployment environment",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    backend: BackendName = Field(
        default="relational", description="Data Port implementation to wire"
    )

    # Relational backend
    database_url: str = Field(
        default="sqlite:///record_hub.db", description="SQLAlchemy database URL"
    )
    database_connect_timeout: int = Field(
        default=10, description="Connection timeout in seconds"
    )
    database_max_retries: int = Field(
        default=3, description="Maximum connection attempts per lookup"
    )
    database_retry_backoff_base: float = Field(
        default=2.0, description="Base for exponential connection backoff (seconds)"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Key-value backend
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    redis_key_prefix: str = Field(
        default="", description="Namespace prepended to every Redis key"
    )
    redis_socket_timeout: float = Field(
        default=5.0, description="Redis socket timeout in seconds"
    )
    async_max_workers: int = Field(
        default=4, description="Worker threads for the async key-value adapter"
    )

    # Authentication
    password_salt: str = Field(
        default="", description="Salt for the default password hasher"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_production_database_url(self) -> "Settings":
        """Reject SQLite as the relational backend in production.

        Raises:
            ValueError: If ENVIRONMENT is 'prod' and database_url is SQLite
        """
        if (
            self.ENVIRONMENT == "prod"
            and self.backend == "relational"
            and self.database_url.startswith("sqlite")
        ):
            raise ValueError(
                "Production environment requires a server database for the "
                f"relational backend, got: {self.database_url[:20]}..."
            )
        return self

    def get_database_connection_string(self) -> str:
        """Return the database URL, correcting the deprecated postgres:// scheme."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url

    def relational_config(self) -> RelationalConfig:
        return RelationalConfig(
            url=self.get_database_connection_string(),
            connect_timeout=self.database_connect_timeout,
            max_retries=self.database_max_retries,
            retry_backoff_base=self.database_retry_backoff_base,
            echo=self.database_echo,
        )

    def key_value_config(self) -> KeyValueConfig:
        return KeyValueConfig(
            url=self.redis_url,
            key_prefix=self.redis_key_prefix,
            socket_timeout=self.redis_socket_timeout,
            max_workers=self.async_max_workers,
        )

    model_config = SettingsConfigDict(
        env_prefix="RECORD_HUB_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    settings = Settings()
    logger.debug(
        "configuration.loaded",
        environment=settings.ENVIRONMENT,
        backend=settings.backend,
    )
    return settings
