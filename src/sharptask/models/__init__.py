"""Data models."""

from .config import ConfigFile, validate_timezone
from .document_task import (
    CheckboxState,
    DateRole,
    DocumentTask,
    PrioritySymbol,
    SourceLocation,
)
from .store_task import (
    NEXT_TAG,
    Annotation,
    StoreDateRole,
    StorePriority,
    StoreStatus,
    StoreTask,
    StoreTaskPatch,
)
from .sync import (
    OutcomeKind,
    SyncReport,
    SyncWarning,
    TaskOutcome,
    WarningKind,
)

__all__ = [
    "NEXT_TAG",
    "Annotation",
    "CheckboxState",
    "ConfigFile",
    "DateRole",
    "DocumentTask",
    "OutcomeKind",
    "PrioritySymbol",
    "SourceLocation",
    "StoreDateRole",
    "StorePriority",
    "StoreStatus",
    "StoreTask",
    "StoreTaskPatch",
    "SyncReport",
    "SyncWarning",
    "TaskOutcome",
    "WarningKind",
    "validate_timezone",
]
