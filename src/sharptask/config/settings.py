"""Application settings."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from ..models import validate_timezone


def _default_timezone() -> str:
    """The TZ environment variable when it names a known zone, else UTC."""
    value = os.environ.get("TZ", "").lstrip(":")
    try:
        return validate_timezone(value)
    except ValueError:
        return "UTC"


class Settings(BaseSettings):
    """Application settings.

    Built once at startup. Keyword arguments (CLI flags, then config file
    values) take precedence over SHARPTASK_* environment variables, which
    take precedence over the defaults.
    """

    vault_path: Path | None = Field(
        default=None,
        description="Obsidian vault to sync",
    )

    file_path: Path | None = Field(
        default=None,
        description="Single note to sync instead of a whole vault",
    )

    task_path: Path = Field(
        default=Path("~/.task"),
        validate_default=True,
        description="Taskwarrior data directory",
    )

    timezone: str = Field(
        default_factory=_default_timezone,
        description="IANA timezone used for task dates",
    )

    config_path: Path | None = Field(
        default=None,
        description="Config file to load instead of ~/.sharptask/config.yml",
    )

    task_binary: str = Field(
        default="task",
        description="Taskwarrior executable",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "SHARPTASK_",
    }

    @field_validator("vault_path", "file_path", "task_path", "config_path", "log_file")
    @classmethod
    def expand_user(cls, v: Path | None) -> Path | None:
        """Expand ~ in paths."""
        return v.expanduser() if v is not None else None

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        """Timezone must be a valid IANA key."""
        return validate_timezone(v)

    @model_validator(mode="after")
    def check_target(self) -> "Settings":
        """A single note replaces the vault when both are given."""
        if self.file_path is not None and self.vault_path is not None:
            try:
                self.file_path.relative_to(self.vault_path)
            except ValueError:
                # Note outside the vault: no vault-relative links
                self.vault_path = None
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
