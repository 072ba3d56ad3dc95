"""Sync engine driving the two one-directional flows.

- md-to-tc: every task line in the vault is written to the task store.
  New lines are created and get their identity link embedded.
- tc-to-md: every tracked task line is rewritten from the task store.

There is no merge: each flow overwrites the other side. The store is
exported once per run into a uuid index, and note rewrites are batched per
file.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import UUID
from zoneinfo import ZoneInfo

from ..errors import StoreUnavailableError
from ..models import (
    DocumentTask,
    OutcomeKind,
    SourceLocation,
    StoreTask,
    SyncReport,
    SyncWarning,
    TaskOutcome,
    WarningKind,
)
from ..parser import parse_line
from .mapper import AttributeMapper
from .resolver import IdentityResolver, Resolution
from .rewriter import DocumentRewriter, LineEdits

if TYPE_CHECKING:
    from ..repositories import TaskStore, VaultScanner

logger = logging.getLogger(__name__)

MD_TO_TC = "md-to-tc"
TC_TO_MD = "tc-to-md"

Resolve = Callable[[DocumentTask, dict[UUID, StoreTask]], Resolution]


class SyncEngine:
    """Run md-to-tc and tc-to-md over a vault (or a single note).

    Per-task problems are recorded in the returned report and never stop
    the run. ``StoreUnavailableError`` stops it, after the line rewrites
    already decided for the current note have been written, so the
    identities of tasks created so far are never lost.
    """

    def __init__(
        self,
        store: TaskStore,
        scanner: VaultScanner,
        tz: ZoneInfo,
        vault_path: Path | None = None,
        rewriter: DocumentRewriter | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            store: Task store accessor
            scanner: Finds candidate task lines in notes
            tz: Timezone for date conversion
            vault_path: Vault root, used for Obsidian links on created tasks
            rewriter: Note rewriter (a default one is created if omitted)
        """
        self._store = store
        self._scanner = scanner
        self._tz = tz
        self._mapper = AttributeMapper(tz)
        self._resolver = IdentityResolver(store, self._mapper, vault_path)
        self._rewriter = rewriter or DocumentRewriter()

    # --- Public API ---

    def markdown_to_store(self) -> SyncReport:
        """Write every task line of the vault to the task store.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        return self._run(MD_TO_TC, self._resolver.push, tracked_only=False)

    def store_to_markdown(self) -> SyncReport:
        """Rewrite every tracked task line from the task store.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        return self._run(TC_TO_MD, self._resolver.pull, tracked_only=True)

    # --- Internal ---

    def _run(self, direction: str, resolve: Resolve, tracked_only: bool) -> SyncReport:
        report = SyncReport(direction=direction)

        known = self._load_index(report)
        seen: dict[UUID, str] = {}  # uuid -> location of the authoritative line

        for path, candidates in self._scanner.scan():
            edits: LineEdits = {}
            outcomes: dict[int, TaskOutcome] = {}
            try:
                for candidate in candidates:
                    location = SourceLocation(path=path, line=candidate.line)
                    task = parse_line(candidate.text, self._tz, location)
                    if task is None:
                        continue
                    self._add_warnings(report, task.warnings)
                    if tracked_only and not task.is_tracked:
                        continue

                    if task.identity is not None:
                        first = seen.get(task.identity)
                        if first is not None:
                            report.outcomes.append(self._duplicate(report, task, first))
                            continue
                        seen[task.identity] = str(location)

                    outcome, new_text = self._resolve_one(resolve, task, known, report)
                    report.outcomes.append(outcome)
                    if new_text is not None:
                        edits[candidate.line] = (candidate.text, new_text)
                        outcomes[candidate.line] = outcome
            finally:
                # Flushed even when the store goes away mid-note
                self._flush(path, edits, outcomes, report)

        for path, reason in self._scanner.unreadable:
            self._add_warnings(
                report, [SyncWarning(WarningKind.UNREADABLE_FILE, reason, str(path))]
            )

        logger.info(
            "%s finished: %d created, %d updated, %d skipped, %d failed, %d warnings",
            direction,
            report.created,
            report.updated,
            report.skipped,
            report.failed,
            len(report.warnings),
        )
        return report

    def _load_index(self, report: SyncReport) -> dict[UUID, StoreTask]:
        """Export the store once into a uuid index."""
        tasks = self._store.query_all_tracked()
        known: dict[UUID, StoreTask] = {}
        for task in tasks:
            if task.uuid in known:
                # Should not happen with a healthy store; keep the first record
                logger.warning("Store returned uuid %s twice", task.uuid)
                continue
            known[task.uuid] = task
        logger.info("Loaded %d tasks from the task store (%s)", len(known), report.direction)
        return known

    def _resolve_one(
        self,
        resolve: Resolve,
        task: DocumentTask,
        known: dict[UUID, StoreTask],
        report: SyncReport,
    ) -> tuple[TaskOutcome, str | None]:
        label = task.display()
        try:
            resolution = resolve(task, known)
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.error("Failed to sync %s: %s", label, e)
            return TaskOutcome(OutcomeKind.FAILED, label, task.identity, str(e)), None

        if resolution.warning is not None:
            self._add_warnings(report, [resolution.warning])
        outcome = TaskOutcome(resolution.kind, label, resolution.uuid, resolution.message)
        return outcome, resolution.new_text

    def _duplicate(self, report: SyncReport, task: DocumentTask, first: str) -> TaskOutcome:
        message = f"uuid {task.identity} already used at {first}"
        location = str(task.source_location) if task.source_location else None
        self._add_warnings(report, [SyncWarning(WarningKind.DUPLICATE_IDENTITY, message, location)])
        return TaskOutcome(OutcomeKind.WARNED, task.display(), task.identity, message)

    def _flush(
        self,
        path: Path,
        edits: LineEdits,
        outcomes: dict[int, TaskOutcome],
        report: SyncReport,
    ) -> None:
        """Write the batched line edits of one note."""
        if not edits:
            return

        try:
            stale = self._rewriter.apply(path, edits)
        except OSError as e:
            logger.error("Failed to rewrite %s: %s", path, e)
            for outcome in outcomes.values():
                outcome.kind = OutcomeKind.FAILED
                outcome.message = f"note could not be written: {e}"
            return

        reason = "line changed on disk during the run; not rewritten"
        for index in stale:
            location = str(SourceLocation(path=path, line=index))
            self._add_warnings(report, [SyncWarning(WarningKind.STALE_LINE, reason, location)])
            outcome = outcomes.get(index)
            if outcome is not None:
                outcome.kind = OutcomeKind.FAILED
                outcome.message = reason

        if len(stale) < len(edits):
            report.files_written.append(str(path))

    @staticmethod
    def _add_warnings(report: SyncReport, warnings: list[SyncWarning]) -> None:
        for warning in warnings:
            logger.warning("%s", warning)
            report.warnings.append(warning)
