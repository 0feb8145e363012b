"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cartridge.config.constants import (
    HTTP_SHUTDOWN_GRACE_SECONDS,
    MAX_BLOCKS_PER_CYCLE,
    POLL_INTERVAL_SECONDS,
    RPC_TIMEOUT,
)


SUPPORTED_DATABASE_DRIVERS = ("sqlite+aiosqlite", "postgresql+asyncpg")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Nimiq node
    nimiq_rpc_url: str
    rpc_timeout_seconds: float = Field(
        default=RPC_TIMEOUT, gt=0, description="Per-call RPC timeout in seconds"
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/chunks.db"
    database_echo: bool = False

    # Manifests
    manifests_dir: str = "./manifests"

    # Indexer
    poll_interval_seconds: int = Field(
        default=POLL_INTERVAL_SECONDS,
        ge=1,
        description="Indexer polling interval in seconds",
    )
    index_start_height: int = Field(
        default=0,
        ge=0,
        description="Block-scan starting height when no cursor is stored",
    )
    max_blocks_per_cycle: int = Field(
        default=MAX_BLOCKS_PER_CYCLE,
        ge=1,
        description="Maximum blocks scanned per indexer cycle",
    )
    hash_discovery_enabled: bool = True
    block_scan_mode: Literal["off", "on", "auto"] = Field(
        default="auto",
        description=(
            "Block scanning: always, never, or only when a manifest "
            "has no expected transaction hashes"
        ),
    )
    cache_malformed_hashes: bool = Field(
        default=True,
        description="Skip refetching hashes whose payload was malformed",
    )

    # HTTP server
    http_host: str = "0.0.0.0"
    http_port: int = Field(
        default=8080, ge=1, le=65535, description="HTTP API server port"
    )
    http_shutdown_grace_seconds: float = Field(
        default=HTTP_SHUTDOWN_GRACE_SECONDS, ge=0
    )
    cors_allowed_origins: str = "*"  # Comma-separated list

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    log_file: str | None = "logs/indexer.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("nimiq_rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        """Validate the node URL has an http(s) scheme and a host."""
        parsed = urlparse(v.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                "NIMIQ_RPC_URL must include scheme and host, "
                "e.g. http://localhost:8648"
            )
        return v.strip()

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Only async drivers can back the chunk store."""
        if not v.startswith(SUPPORTED_DATABASE_DRIVERS):
            raise ValueError(
                "DATABASE_URL must use an async driver: "
                f"{', '.join(SUPPORTED_DATABASE_DRIVERS)}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the log level name."""
        return v.upper()

    def get_cors_origins(self) -> list[str]:
        """
        Get allowed CORS origins as a list.

        Returns:
            List of origins (``["*"]`` allows any)
        """
        origins = [
            origin.strip()
            for origin in self.cors_allowed_origins.split(",")
            if origin.strip()
        ]
        return origins or ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
