"""Taskwarrior-backed task store.

Talks to Taskwarrior through its command line: ``task export`` for queries
and ``task import`` (JSON on stdin) for creates and updates. Import replaces
the whole record, so updates export the current record first and merge the
patch into it, keeping attributes sharptask does not manage (UDAs,
annotations, ...).
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import threading
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from ..errors import StoreConstraintViolationError, StoreUnavailableError
from ..models import (
    NEXT_TAG,
    Annotation,
    StoreDateRole,
    StorePriority,
    StoreStatus,
    StoreTask,
    StoreTaskPatch,
)
from ..utils import from_taskwarrior, now_utc, to_taskwarrior
from .protocol import check_patch, ensure_end_date

logger = logging.getLogger(__name__)

# Attributes written by sharptask; everything else is passed through
MANAGED_KEYS = frozenset(
    {"description", "status", "priority", "tags", "project", "annotations"}
    | {role.value for role in StoreDateRole}
)


class TaskwarriorStore:
    """Task store backed by the ``task`` command line program."""

    def __init__(self, data_path: Path, binary: str = "task") -> None:
        """Initialize the store.

        Args:
            data_path: Taskwarrior data directory (rc.data.location)
            binary: Name or path of the Taskwarrior executable
        """
        self.data_path = data_path
        self.binary = binary
        # Taskwarrior assumes a single writer
        self._lock = threading.Lock()

    # --- Public API ---

    def query_by_uuid(self, uuid: UUID) -> StoreTask | None:
        records = self._export(f"uuid:{uuid}")
        if not records:
            return None
        return task_from_json(records[0])

    def query_all_tracked(self) -> list[StoreTask]:
        tasks = [task_from_json(record) for record in self._export()]
        logger.info("Loaded %d tasks from %s", len(tasks), self.data_path)
        return tasks

    def create(self, patch: StoreTaskPatch) -> UUID:
        check_patch(patch, creating=True)

        uuid = uuid4()
        base = StoreTask(
            uuid=uuid,
            description=patch.description or "",
            dates={StoreDateRole.ENTRY: now_utc()},
        )
        task = ensure_end_date(patch.apply_to(base))
        self._import(task_to_json(task))
        logger.debug("Created task %s", uuid)
        return uuid

    def update(self, uuid: UUID, patch: StoreTaskPatch) -> StoreTask:
        records = self._export(f"uuid:{uuid}")
        if not records:
            raise StoreConstraintViolationError(f"No task with uuid {uuid}")
        check_patch(patch)

        record = records[0]
        task = ensure_end_date(patch.apply_to(task_from_json(record)))
        merged = {key: value for key, value in record.items() if key not in MANAGED_KEYS}
        merged.update(task_to_json(task))
        self._import(merged)
        logger.debug("Updated task %s", uuid)
        return task

    # --- Internal: command execution ---

    def _command(self, *args: str) -> list[str]:
        return [
            self.binary,
            f"rc.data.location={self.data_path}",
            "rc.confirmation=off",
            "rc.hooks=off",
            "rc.verbose=nothing",
            "rc.json.array=on",
            *args,
        ]

    def _environment(self) -> dict[str, str]:
        env = os.environ.copy()
        # Without a taskrc, task prompts interactively to create one
        if "TASKRC" not in env and not (Path.home() / ".taskrc").exists():
            env["TASKRC"] = os.devnull
        return env

    def _run(self, *args: str, stdin: str | None = None) -> str:
        """Run a task command, returning stdout.

        Raises:
            StoreUnavailableError: If the data directory or binary is missing
            subprocess.CalledProcessError: If task exits non-zero
        """
        if not self.data_path.is_dir():
            raise StoreUnavailableError(f"Task data directory not found: {self.data_path}")

        command = self._command(*args)
        logger.debug("Running: %s", " ".join(command))
        with self._lock:
            try:
                result = subprocess.run(
                    command,
                    input=stdin,
                    capture_output=True,
                    text=True,
                    check=True,
                    env=self._environment(),
                )
            except FileNotFoundError as e:
                raise StoreUnavailableError(
                    f"Taskwarrior executable '{self.binary}' not found"
                ) from e
        return result.stdout

    def _export(self, *filters: str) -> list[dict[str, Any]]:
        try:
            output = self._run(*filters, "export")
        except subprocess.CalledProcessError as e:
            raise StoreUnavailableError(
                f"task export failed: {(e.stderr or '').strip() or e}"
            ) from e

        try:
            records = json.loads(output or "[]")
        except json.JSONDecodeError as e:
            raise StoreUnavailableError(f"task export returned invalid JSON: {e}") from e
        if not isinstance(records, list):
            raise StoreUnavailableError("task export did not return a JSON array")
        return records

    def _import(self, record: dict[str, Any]) -> None:
        record["modified"] = to_taskwarrior(now_utc())
        try:
            self._run("import", stdin=json.dumps(record, ensure_ascii=False) + "\n")
        except subprocess.CalledProcessError as e:
            raise StoreConstraintViolationError(
                f"task import rejected {record.get('uuid')}: {(e.stderr or '').strip() or e}"
            ) from e


def task_from_json(record: dict[str, Any]) -> StoreTask:
    """Convert a Taskwarrior export record to a StoreTask."""
    try:
        status = StoreStatus(record.get("status", "pending"))
    except ValueError:
        # "recurring" templates and unknown statuses are treated as pending
        status = StoreStatus.PENDING

    dates = {
        role: from_taskwarrior(record[role.value])
        for role in StoreDateRole
        if record.get(role.value)
    }

    try:
        priority = StorePriority(record.get("priority", ""))
    except ValueError:
        logger.debug("Unknown priority %r on %s", record.get("priority"), record.get("uuid"))
        priority = StorePriority.NONE

    tags = list(record.get("tags", []))
    annotations = [
        Annotation(entry=from_taskwarrior(item["entry"]), description=item["description"])
        for item in record.get("annotations", [])
        if "entry" in item and "description" in item
    ]

    return StoreTask(
        uuid=UUID(record["uuid"]),
        description=record.get("description", ""),
        status=status,
        dates=dates,
        priority=priority,
        tags=[tag for tag in tags if tag != NEXT_TAG],
        project=record.get("project") or None,
        next_flag=NEXT_TAG in tags,
        annotations=annotations,
    )


def task_to_json(task: StoreTask) -> dict[str, Any]:
    """Convert a StoreTask to a Taskwarrior import record."""
    record: dict[str, Any] = {
        "uuid": str(task.uuid),
        "description": task.description,
        "status": task.status.value,
    }
    for role, value in task.dates.items():
        record[role.value] = to_taskwarrior(value)
    if task.priority is not StorePriority.NONE:
        record["priority"] = task.priority.value

    tags = list(task.tags)
    if task.next_flag:
        tags.append(NEXT_TAG)
    if tags:
        record["tags"] = tags

    if task.project:
        record["project"] = task.project
    if task.annotations:
        record["annotations"] = [
            {"entry": to_taskwarrior(item.entry), "description": item.description}
            for item in task.annotations
        ]
    return record
