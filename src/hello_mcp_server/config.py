"""Server configuration loaded from the environment and ``.env``."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the hello MCP server."""

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # Upstream API used by fetch_external_data
    api_base: str
    api_code: str
    upstream_timeout: float = Field(default=10.0, gt=0)

    # HTTP binding
    host: str = "0.0.0.0"
    port: int = 8000
    mcp_path: str = "/mcp"

    # Upper bound for a single tool call, in seconds
    tool_timeout: float = Field(default=30.0, gt=0)

    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
