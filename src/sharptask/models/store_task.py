"""Store task domain model (a Taskwarrior record)."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

# Reserved store tag carrying the next flag
NEXT_TAG = "next"


class StoreStatus(str, Enum):
    """Status of a task in the store."""

    PENDING = "pending"
    COMPLETED = "completed"
    DELETED = "deleted"
    WAITING = "waiting"


class StorePriority(str, Enum):
    """Priority values understood by the store."""

    NONE = ""
    LOW = "L"
    MEDIUM = "M"
    HIGH = "H"


class StoreDateRole(str, Enum):
    """Date attributes of a store task."""

    DUE = "due"
    SCHEDULED = "scheduled"
    WAIT = "wait"
    ENTRY = "entry"
    END = "end"


class Annotation(BaseModel):
    """A timestamped note attached to a store task."""

    entry: datetime
    description: str


class StoreTask(BaseModel):
    """A task record held by the external task store."""

    uuid: UUID
    description: str
    status: StoreStatus = StoreStatus.PENDING
    dates: dict[StoreDateRole, datetime] = Field(default_factory=dict)
    priority: StorePriority = StorePriority.NONE
    tags: list[str] = Field(default_factory=list)  # Never contains NEXT_TAG
    project: str | None = None
    next_flag: bool = False
    annotations: list[Annotation] = Field(default_factory=list)

    model_config = {"frozen": True}


class StoreTaskPatch(BaseModel):
    """Fields to write to a store task.

    Only fields in ``model_fields_set`` are written. A field explicitly set
    to None is cleared. For ``dates``, each present key is written and a
    None value clears that date.
    """

    description: str | None = None
    status: StoreStatus | None = None
    dates: dict[StoreDateRole, datetime | None] = Field(default_factory=dict)
    priority: StorePriority | None = None
    tags: list[str] | None = None
    next_flag: bool | None = None
    project: str | None = None
    annotations: list[Annotation] | None = None

    @property
    def is_empty(self) -> bool:
        """Whether the patch would not change anything."""
        fields = self.model_fields_set - {"dates"}
        return not fields and not self.dates

    def apply_to(self, task: StoreTask) -> StoreTask:
        """Return a copy of ``task`` with this patch applied."""
        update: dict = {}
        fields = self.model_fields_set

        if "description" in fields and self.description is not None:
            update["description"] = self.description
        if "status" in fields and self.status is not None:
            update["status"] = self.status
        if "priority" in fields:
            update["priority"] = self.priority or StorePriority.NONE
        if "tags" in fields:
            update["tags"] = [tag for tag in (self.tags or []) if tag != NEXT_TAG]
        if "next_flag" in fields:
            update["next_flag"] = bool(self.next_flag)
        if "project" in fields:
            update["project"] = self.project or None
        if "annotations" in fields and self.annotations:
            update["annotations"] = [*task.annotations, *self.annotations]

        if self.dates:
            dates = dict(task.dates)
            for role, value in self.dates.items():
                if value is None:
                    dates.pop(role, None)
                else:
                    dates[role] = value
            update["dates"] = dates

        return task.model_copy(update=update)
