"""Configuration management for telnet sessions using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="TELNET_SESSIONS_",
        extra="ignore",
    )

    # Connection Settings
    connect_timeout_ms: int = Field(
        default=5000, gt=0, description="Default TCP connect timeout in milliseconds"
    )
    read_chunk_size: int = Field(
        default=4096, gt=0, description="Bytes requested per socket read"
    )

    # Buffer Settings
    max_buffer_size: int = Field(
        default=1_048_576, gt=0, description="Receive buffer cap per session in bytes"
    )
    default_encoding: str = Field(default="utf8", description="Encoding used by reads")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format (console or json)")

    @property
    def connect_timeout(self) -> float:
        """Get the connect timeout in seconds."""
        return self.connect_timeout_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
