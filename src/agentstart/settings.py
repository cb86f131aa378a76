"""Environment-based application settings using pydantic-settings.

Values come from ``AGENTSTART_*`` environment variables or an optional .env
file; command line options override them per invocation.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_URL = "https://raw.githubusercontent.com/agentstart/assets/main"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="AGENTSTART_", case_sensitive=False, extra="ignore"
    )

    # Logging
    log_level: str = Field(default="WARNING", description="Application log level")
    log_format: str = Field(default="text", description="Log format: json or text")

    # Config store
    config_dir: Optional[str] = Field(default=None, description="Override the global config directory")

    # Registry
    registry_url: str = Field(default=DEFAULT_REGISTRY_URL)
    registry_timeout: float = Field(default=5.0, description="Registry request timeout in seconds")
    registry_required: bool = Field(
        default=True,
        description="Fail resolution when the registry cannot be reached instead of using installed config only",
    )

    # Interactive selection
    max_display: int = Field(default=20, description="Maximum matches listed in a selection menu")

    @field_validator("registry_timeout")
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("max_display")
    def validate_max_display(cls, v):
        if v < 1:
            raise ValueError("max_display must be at least 1")
        return v
