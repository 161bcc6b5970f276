"""Configuration management for llamastream."""

from __future__ import annotations

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from llamastream.core.transcript import DEFAULT_SYSTEM_PROMPT
from llamastream.engine.base import GraphOptions
from llamastream.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLAMASTREAM_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Engine Configuration
    ctx_size: int = Field(default=512, gt=0, description="Context window size in tokens")
    n_gpu_layers: int = Field(default=0, ge=0, description="Number of model layers offloaded to the GPU")
    enable_log: bool = Field(default=False, description="Enable verbose backend logging")

    # Conversation Configuration
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, description="System prompt for the conversation")
    metadata_input: bool = Field(default=False, description="Also pass graph options through input tensor 1")
    show_metadata: bool = Field(default=False, description="Report token counts after each turn")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")

    def graph_options(self) -> GraphOptions:
        return GraphOptions(
            enable_log=self.enable_log,
            gpu_layers=self.n_gpu_layers,
            context_size=self.ctx_size,
        )


def get_settings(**overrides: object) -> Settings:
    """Get application settings.

    Args:
        overrides: Explicit values, typically from CLI options. ``None`` values are ignored.

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a value fails validation.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc
