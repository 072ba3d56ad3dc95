"""Sync commands: md-to-tc and tc-to-md."""

import logging

from ..config import Settings
from ..errors import StoreUnavailableError
from ..models import OutcomeKind, SyncReport
from ..repositories import TaskStore, TaskwarriorStore, VaultScanner
from ..sync import MD_TO_TC, TC_TO_MD, SyncEngine
from .output import error, header, info, success, warning

logger = logging.getLogger(__name__)

DIRECTIONS = (MD_TO_TC, TC_TO_MD)


def run_sync(settings: Settings, direction: str, store: TaskStore | None = None) -> int:
    """Run one sync direction and print its report.

    Args:
        settings: Resolved application settings
        direction: "md-to-tc" or "tc-to-md"
        store: Task store to use (default: Taskwarrior at settings.task_path)

    Returns:
        Exit code (0 when the run completed, 1 on a fatal error)
    """
    if direction not in DIRECTIONS:
        error(f"Unknown command '{direction}'")
        return 1

    scanner = _build_scanner(settings)
    if scanner is None:
        return 1

    if store is None:
        store = TaskwarriorStore(settings.task_path, binary=settings.task_binary)
    engine = SyncEngine(store, scanner, settings.tz, vault_path=settings.vault_path)

    target = settings.file_path or settings.vault_path
    if direction == MD_TO_TC:
        header(f"Syncing {target} to the task store...")
    else:
        header(f"Syncing the task store to {target}...")

    try:
        if direction == MD_TO_TC:
            report = engine.markdown_to_store()
        else:
            report = engine.store_to_markdown()
    except StoreUnavailableError as e:
        logger.error("Task store unavailable: %s", e)
        error(f"Task store unavailable: {e}")
        info(f"Check that Taskwarrior is installed and {settings.task_path} exists")
        return 1

    _display_report(report)
    return 0


def _build_scanner(settings: Settings) -> VaultScanner | None:
    """Check the sync target and build a scanner for it."""
    if settings.file_path is not None:
        if not settings.file_path.is_file():
            error(f"Note not found: {settings.file_path}")
            return None
        return VaultScanner(file_path=settings.file_path)

    if settings.vault_path is None:
        error("No vault configured")
        info("Pass --vault or set vault_path in ~/.sharptask/config.yml")
        return None
    if not settings.vault_path.is_dir():
        error(f"Vault not found: {settings.vault_path}")
        return None
    return VaultScanner(vault_path=settings.vault_path)


def _display_report(report: SyncReport) -> None:
    """Print each task outcome, the warnings and a summary."""
    print()
    for outcome in report.outcomes:
        suffix = f" ({outcome.message})" if outcome.message else ""
        if outcome.kind == OutcomeKind.CREATED:
            success(f"Created {outcome.label} [{outcome.uuid}]")
        elif outcome.kind == OutcomeKind.UPDATED:
            success(f"Updated {outcome.label}{suffix}")
        elif outcome.kind == OutcomeKind.FAILED:
            error(f"Failed {outcome.label}{suffix}")
        elif outcome.kind == OutcomeKind.SKIPPED:
            logger.debug("Skipped %s%s", outcome.label, suffix)

    if report.warnings:
        print()
        for item in report.warnings:
            warning(f"[{item.kind.value}] {item}")

    print()
    info(
        f"{report.direction}: {report.created} created, {report.updated} updated, "
        f"{report.skipped} unchanged, {report.failed} failed, "
        f"{len(report.warnings)} warning(s)"
    )
    if report.files_written:
        info(f"Rewrote {len(report.files_written)} note(s)")
