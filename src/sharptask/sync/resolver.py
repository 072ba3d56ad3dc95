"""Identity resolution: deciding whether a document task is created,
updated or left alone, and writing it to the other side."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote
from uuid import UUID

from ..errors import StoreConstraintViolationError
from ..models import (
    Annotation,
    DocumentTask,
    OutcomeKind,
    StoreTask,
    SyncWarning,
    WarningKind,
)
from ..utils import now_utc

if TYPE_CHECKING:
    from ..repositories import TaskStore
    from .mapper import AttributeMapper

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """What happened to one document task."""

    kind: OutcomeKind
    uuid: UUID | None = None
    new_text: str | None = None  # Replacement line, when the note must change
    message: str = ""
    warning: SyncWarning | None = None


class IdentityResolver:
    """Join document tasks to store tasks by uuid and write the changes.

    ``known`` is the run's uuid index of store tasks. It is updated in place
    after every create and update so later lookups see the stored values.
    """

    def __init__(
        self,
        store: TaskStore,
        mapper: AttributeMapper,
        vault_path: Path | None = None,
    ) -> None:
        self._store = store
        self._mapper = mapper
        self._vault_path = vault_path

    # --- md-to-tc ---

    def push(self, task: DocumentTask, known: dict[UUID, StoreTask]) -> Resolution:
        """Write a document task to the store.

        Untracked tasks are created and get their identity embedded in the
        returned line. Tracked tasks are updated with the fields that
        differ. A uuid the store does not know is never recreated.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        if task.identity is None:
            return self._create(task, known)

        current = known.get(task.identity)
        if current is None:
            return self._dangling(task)

        patch = self._mapper.changes(self._mapper.to_store(task, current), current)
        if patch.is_empty:
            return Resolution(OutcomeKind.SKIPPED, uuid=current.uuid, message="unchanged")

        try:
            known[current.uuid] = self._store.update(current.uuid, patch)
        except StoreConstraintViolationError as e:
            logger.error("Store rejected update of %s: %s", current.uuid, e)
            return Resolution(OutcomeKind.FAILED, uuid=current.uuid, message=str(e))

        changed = ", ".join(sorted(patch.model_fields_set))
        logger.info("Updated %s (%s)", current.uuid, changed)
        return Resolution(OutcomeKind.UPDATED, uuid=current.uuid, message=changed)

    def _create(self, task: DocumentTask, known: dict[UUID, StoreTask]) -> Resolution:
        patch = self._mapper.to_store(task)
        link = self.obsidian_link(task)
        if link is not None:
            patch.annotations = [Annotation(entry=now_utc(), description=link)]

        try:
            uuid = self._store.create(patch)
        except StoreConstraintViolationError as e:
            logger.error("Store rejected %r: %s", task.description, e)
            return Resolution(OutcomeKind.FAILED, message=str(e))

        created = self._store.query_by_uuid(uuid)
        if created is None:
            created = patch.apply_to(StoreTask(uuid=uuid, description=task.description))
        known[uuid] = created

        logger.info("Created %s for %r", uuid, task.description)
        return Resolution(
            OutcomeKind.CREATED,
            uuid=uuid,
            new_text=self._mapper.embed_identity(task.raw_text, uuid),
        )

    # --- tc-to-md ---

    def pull(self, task: DocumentTask, known: dict[UUID, StoreTask]) -> Resolution:
        """Render the stored values of a tracked task into its line."""
        if task.identity is None:
            return Resolution(OutcomeKind.SKIPPED, message="untracked")

        current = known.get(task.identity)
        if current is None:
            return self._dangling(task)

        warning = None
        if current.description != task.description:
            conflict = self._mapper.description_conflict(current)
            if conflict is not None:
                message = f"{conflict}; kept the line's description"
                location = str(task.source_location) if task.source_location else None
                warning = SyncWarning(WarningKind.PARSE, message, location)

        new_text = self._mapper.to_document(current, task.raw_text)
        if new_text == task.raw_text:
            if warning is not None:
                return Resolution(
                    OutcomeKind.WARNED, uuid=current.uuid, message=warning.message, warning=warning
                )
            return Resolution(OutcomeKind.SKIPPED, uuid=current.uuid, message="unchanged")
        return Resolution(
            OutcomeKind.UPDATED, uuid=current.uuid, new_text=new_text, warning=warning
        )

    # --- Helpers ---

    def obsidian_link(self, task: DocumentTask) -> str | None:
        """URI that opens the task's note in Obsidian, when a vault is known."""
        if self._vault_path is None or task.source_location is None:
            return None

        path = task.source_location.path
        try:
            note = path.relative_to(self._vault_path).with_suffix("")
        except ValueError:
            note = Path(path.stem)
        vault = quote(self._vault_path.name)
        return f"obsidian://open?vault={vault}&file={quote(note.as_posix())}"

    def _dangling(self, task: DocumentTask) -> Resolution:
        message = f"uuid {task.identity} not found in the task store"
        location = str(task.source_location) if task.source_location else None
        return Resolution(
            OutcomeKind.WARNED,
            uuid=task.identity,
            message=message,
            warning=SyncWarning(WarningKind.DANGLING_IDENTITY, message, location),
        )
