"""Agent configuration, read once from the environment at startup."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

AGENT_DIR_NAME = ".codespace-agent"


def determine_workdir(cwd: Path | None = None) -> Path:
    """Default working root: the parent of ``.codespace-agent`` when run from inside it."""
    cwd = cwd or Path.cwd()
    if cwd.name == AGENT_DIR_NAME:
        return cwd.parent
    return cwd


class AgentSettings(BaseSettings):
    agent_token: str = Field(default="", description="Shared bearer credential.")
    host: str = "0.0.0.0"
    port: int = 3001
    workdir: Optional[Path] = None
    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0)
    allowed_extensions: Optional[str] = Field(
        default=None, description="Comma-separated extension allow-list for writes."
    )
    cors_origin: str = "*"
    command_timeout: float = Field(default=30.0, gt=0)
    stream_timeout: float = Field(default=600.0, gt=0)
    shutdown_grace_period: float = Field(default=10.0, ge=0)
    terminal_shell: Optional[str] = None
    log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def working_root(self) -> Path:
        return (self.workdir or determine_workdir()).expanduser().resolve()

    @property
    def extension_allow_list(self) -> list[str] | None:
        if self.allowed_extensions is None:
            return None
        extensions = [ext.strip() for ext in self.allowed_extensions.split(",") if ext.strip()]
        return extensions or None

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]


def get_settings() -> AgentSettings:
    return AgentSettings()
