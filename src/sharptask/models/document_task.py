"""Document task domain model."""

from datetime import date
from enum import Enum
from pathlib import Path
from uuid import UUID

from pydantic import BaseModel, Field

from .sync import SyncWarning


class CheckboxState(str, Enum):
    """State of a markdown checkbox."""

    OPEN = "open"  # - [ ]
    DONE = "done"  # - [x]
    CANCELED = "canceled"  # - [-]

    @classmethod
    def from_char(cls, char: str) -> "CheckboxState | None":
        """Map the character between the brackets to a state."""
        return _CHAR_TO_STATE.get(char)

    @property
    def char(self) -> str:
        """Canonical checkbox character for this state."""
        return _STATE_TO_CHAR[self]


_CHAR_TO_STATE = {
    " ": CheckboxState.OPEN,
    "x": CheckboxState.DONE,
    "X": CheckboxState.DONE,
    "-": CheckboxState.CANCELED,
}

_STATE_TO_CHAR = {
    CheckboxState.OPEN: " ",
    CheckboxState.DONE: "x",
    CheckboxState.CANCELED: "-",
}


class DateRole(str, Enum):
    """Semantic role of a date on a document task."""

    DUE = "due"
    SCHEDULED = "scheduled"
    START = "start"
    CREATED = "created"
    COMPLETED = "completed"
    CANCELED = "canceled"


class PrioritySymbol(str, Enum):
    """Priority glyphs recognised on a document line."""

    HIGHEST = "🔺"
    HIGH = "⏫"
    MEDIUM = "🔼"
    LOW = "🔽"
    LOWEST = "⏬"


class SourceLocation(BaseModel):
    """Where a task line lives: file path and 0-based line index."""

    path: Path
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line + 1}"


class DocumentTask(BaseModel):
    """A single task parsed from a line of a markdown note."""

    raw_text: str
    description: str
    checkbox_state: CheckboxState = CheckboxState.OPEN
    dates: dict[DateRole, date] = Field(default_factory=dict)
    priority_symbol: PrioritySymbol | None = None
    tags: list[str] = Field(default_factory=list)
    project: str | None = None
    identity: UUID | None = None
    source_location: SourceLocation | None = None

    # Non-fatal problems found while parsing this line
    warnings: list[SyncWarning] = Field(default_factory=list)

    @property
    def is_tracked(self) -> bool:
        """Whether the line already carries a store identity."""
        return self.identity is not None

    def display(self) -> str:
        """Short label for reports."""
        if self.source_location is not None:
            return f"{self.source_location} {self.description}"
        return self.description
