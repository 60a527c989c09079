"""Configuration module for toolhub-server using pydantic-settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ToolHubSettings(BaseSettings):
    """Main configuration settings for toolhub-server.

    All settings can be overridden via environment variables with the TOOLHUB_ prefix.
    For example, TOOLHUB_PORT will override the port setting.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = Field(default=5005, ge=1024, le=65535)

    # Identity reported to discover requests
    server_name: str = "ToolHub Server"
    server_version: str = "0.1.0"
    capabilities: list[str] = Field(default_factory=lambda: ["tool_execution"])

    # Discovery WebSocket (/ws/discovery)
    discovery_enabled: bool = True

    # Execution deadline in seconds, 0 disables it
    execution_timeout: float = Field(default=300.0, ge=0)

    # Schema nesting ceiling
    max_schema_depth: int = Field(default=64, ge=1)

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="TOOLHUB_")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value}")
        return level

    @property
    def resolved_execution_timeout(self) -> float | None:
        """Execution deadline, or None when disabled."""
        return self.execution_timeout or None
