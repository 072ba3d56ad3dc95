"""Store accessor protocol for task store backends."""

from typing import Protocol
from uuid import UUID

from ..errors import StoreConstraintViolationError
from ..models import StoreDateRole, StoreStatus, StoreTask, StoreTaskPatch
from ..utils import now_utc


class TaskStore(Protocol):
    """Interface to the external task store.

    All store access goes through this contract. Implementations must
    serialize writes: the store assumes a single writer.

    Every method raises ``StoreUnavailableError`` when the store cannot be
    reached or queried. ``create`` and ``update`` raise
    ``StoreConstraintViolationError`` when the store rejects a patch.
    """

    def query_by_uuid(self, uuid: UUID) -> StoreTask | None:
        """Get a single task by uuid.

        Returns:
            The task if found (any status), None otherwise.
        """
        ...

    def query_all_tracked(self) -> list[StoreTask]:
        """Load every task the store knows about, any status."""
        ...

    def create(self, patch: StoreTaskPatch) -> UUID:
        """Create a task from a patch.

        Returns:
            The uuid assigned to the new task.
        """
        ...

    def update(self, uuid: UUID, patch: StoreTaskPatch) -> StoreTask:
        """Apply a patch to an existing task.

        Returns:
            The task as stored after the update.
        """
        ...


def check_patch(patch: StoreTaskPatch, creating: bool = False) -> None:
    """Validate a patch the way the store does before accepting it.

    Raises:
        StoreConstraintViolationError: If the patch would be rejected
    """
    fields = patch.model_fields_set
    if creating or "description" in fields:
        if not (patch.description or "").strip():
            raise StoreConstraintViolationError("Task description cannot be empty")
    for tag in patch.tags or []:
        if not tag or any(char.isspace() for char in tag):
            raise StoreConstraintViolationError(f"Malformed tag '{tag}'")
    if patch.project is not None and "\n" in patch.project:
        raise StoreConstraintViolationError("Project cannot span lines")


def ensure_end_date(task: StoreTask) -> StoreTask:
    """Completed and deleted tasks always carry an end date."""
    if task.status in (StoreStatus.COMPLETED, StoreStatus.DELETED):
        if StoreDateRole.END not in task.dates:
            dates = {**task.dates, StoreDateRole.END: now_utc()}
            return task.model_copy(update={"dates": dates})
    return task
