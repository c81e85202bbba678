"""Settings for the CLI, request handler and MCP server.

Library callers pass options explicitly; these settings exist for the entry
points that are configured from the environment.
"""

from __future__ import annotations

import os
from typing import Annotated, Any

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from askdb.core.types import ProviderName
from askdb.exceptions import ConfigurationError
from askdb.query.limiter import DEFAULT_MAX_ROWS
from askdb.query.orchestrator import DEFAULT_TIMEOUT_MS

# Conventional API key variables per provider, used when ASKDB_API_KEY is unset
PROVIDER_KEY_VARS = {
    ProviderName.GOOGLE: "GEMINI_API_KEY",
    ProviderName.OPENAI: "OPENAI_API_KEY",
    ProviderName.ANTHROPIC: "ANTHROPIC_API_KEY",
}


class AskDBSettings(BaseSettings):
    """Runtime configuration, read from ASKDB_* environment variables."""

    provider: ProviderName = Field(default=ProviderName.GOOGLE)
    model: str | None = Field(default=None, description="Model name (provider default if unset)")
    api_key: str | None = Field(default=None, repr=False)
    database_url: str | None = None
    max_rows: int = Field(default=DEFAULT_MAX_ROWS, ge=1)
    format_results: bool = True
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_prefix="ASKDB_",
        env_ignore_empty=True,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [origin.strip() for origin in value.split(",") if origin.strip()]
        return value or ["*"]

    @model_validator(mode="after")
    def provider_key_fallback(self) -> AskDBSettings:
        if not self.api_key:
            self.api_key = os.environ.get(PROVIDER_KEY_VARS[self.provider]) or None
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> AskDBSettings:
        """Load settings from the environment.

        Args:
            **overrides: Values that take precedence over the environment;
                None values are ignored

        Raises:
            ConfigurationError: If a variable has an unusable value
        """
        try:
            return cls(**{key: value for key, value in overrides.items() if value is not None})
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid settings: {errors}") from e
