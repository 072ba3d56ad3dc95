"""In-process task store."""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from ..errors import StoreConstraintViolationError, StoreUnavailableError
from ..models import StoreDateRole, StoreTask, StoreTaskPatch
from ..utils import now_utc
from .protocol import check_patch, ensure_end_date

logger = logging.getLogger(__name__)


class MemoryTaskStore:
    """Task store kept in a dict, with the same validation as the real store.

    Useful for embedding and tests. Set ``available = False`` to simulate a
    store that cannot be reached.
    """

    def __init__(self, tasks: list[StoreTask] | None = None) -> None:
        self._tasks: dict[UUID, StoreTask] = {task.uuid: task for task in tasks or []}
        self.available = True
        self.writes = 0

    def _ensure_available(self) -> None:
        if not self.available:
            raise StoreUnavailableError("Task store is not available")

    def query_by_uuid(self, uuid: UUID) -> StoreTask | None:
        self._ensure_available()
        return self._tasks.get(uuid)

    def query_all_tracked(self) -> list[StoreTask]:
        self._ensure_available()
        return list(self._tasks.values())

    def create(self, patch: StoreTaskPatch) -> UUID:
        self._ensure_available()
        check_patch(patch, creating=True)

        uuid = uuid4()
        base = StoreTask(
            uuid=uuid,
            description=patch.description or "",
            dates={StoreDateRole.ENTRY: now_utc()},
        )
        task = ensure_end_date(patch.apply_to(base))
        self._tasks[uuid] = task
        self.writes += 1
        logger.debug("Created task %s", uuid)
        return uuid

    def update(self, uuid: UUID, patch: StoreTaskPatch) -> StoreTask:
        self._ensure_available()
        current = self._tasks.get(uuid)
        if current is None:
            raise StoreConstraintViolationError(f"No task with uuid {uuid}")
        check_patch(patch)

        task = ensure_end_date(patch.apply_to(current))
        self._tasks[uuid] = task
        self.writes += 1
        logger.debug("Updated task %s", uuid)
        return task

    def __len__(self) -> int:
        return len(self._tasks)
