"""Sync-related data models: warnings, per-task outcomes and run reports."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class WarningKind(str, Enum):
    """Kinds of non-fatal problems reported during a run."""

    PARSE = "parse"  # Malformed or ambiguous field, dropped
    TAG_REJECTED = "tag_rejected"  # Tag with forbidden characters, dropped
    DANGLING_IDENTITY = "dangling_identity"  # uuid not found in the store
    DUPLICATE_IDENTITY = "duplicate_identity"  # uuid already seen this run
    STALE_LINE = "stale_line"  # Line changed on disk since it was scanned
    UNREADABLE_FILE = "unreadable_file"  # Note could not be read or decoded


@dataclass(frozen=True)
class SyncWarning:
    """A non-fatal problem attached to a task or a run."""

    kind: WarningKind
    message: str
    location: str | None = None

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class OutcomeKind(str, Enum):
    """What happened to a single task during a run."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    WARNED = "warned"
    FAILED = "failed"


@dataclass
class TaskOutcome:
    """Result of processing one document task."""

    kind: OutcomeKind
    label: str  # path:line description
    uuid: UUID | None = None
    message: str = ""


@dataclass
class SyncReport:
    """Result of a whole md-to-tc or tc-to-md run."""

    direction: str
    outcomes: list[TaskOutcome] = field(default_factory=list)
    warnings: list[SyncWarning] = field(default_factory=list)
    files_written: list[str] = field(default_factory=list)

    def count(self, kind: OutcomeKind) -> int:
        """Number of outcomes of the given kind."""
        return sum(1 for outcome in self.outcomes if outcome.kind == kind)

    @property
    def created(self) -> int:
        return self.count(OutcomeKind.CREATED)

    @property
    def updated(self) -> int:
        return self.count(OutcomeKind.UPDATED)

    @property
    def skipped(self) -> int:
        return self.count(OutcomeKind.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(OutcomeKind.FAILED)

    @property
    def has_failures(self) -> bool:
        """Whether any task failed."""
        return self.failed > 0
