"""Configuration file model for ~/.sharptask/config.yml."""

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


def validate_timezone(value: str) -> str:
    """Check that a timezone is a known IANA key (e.g. "Europe/Berlin")."""
    if not value:
        raise ValueError("Timezone cannot be empty")
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone '{value}'") from e
    return value


class ConfigFile(BaseModel):
    """Contents of the sharptask config file.

    Example:
        vault_path: ~/Documents/Vault
        task_path: ~/.task
        timezone: America/Sao_Paulo
    """

    vault_path: Path | None = Field(default=None, description="Obsidian vault to sync")
    task_path: Path = Field(
        default=Path("~/.task"),
        validate_default=True,
        description="Taskwarrior data directory",
    )
    timezone: str | None = Field(
        default=None,
        description="IANA timezone for task dates (default: TZ or UTC)",
    )

    @field_validator("vault_path", "task_path")
    @classmethod
    def expand_user(cls, v: Path | None) -> Path | None:
        """Expand ~ in configured paths."""
        return v.expanduser() if v is not None else None

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        return validate_timezone(v) if v is not None else None

    @classmethod
    def default(cls) -> "ConfigFile":
        """Configuration used when no file exists."""
        return cls()

    def overrides(self) -> dict:
        """Values explicitly set in the file, for building Settings."""
        return self.model_dump(exclude_unset=True, exclude_none=True)
