"""Discovery of task lines in an Obsidian vault."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ..parser import CHECKBOX_PATTERN
from ..utils import split_lines, strip_terminator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateLine:
    """A line that looks like a task, with its position in the note."""

    path: Path
    line: int  # 0-based
    text: str  # Without its terminator


class VaultScanner:
    """Find checkbox lines in every note of a vault, or in a single note.

    Notes are read as UTF-8 with line endings untouched. Hidden directories
    (``.obsidian``, ``.trash``, ``.git``, ...) are skipped.
    """

    NOTE_SUFFIX = ".md"

    def __init__(self, vault_path: Path | None = None, file_path: Path | None = None) -> None:
        if vault_path is None and file_path is None:
            raise ValueError("Either a vault path or a file path is required")
        self.vault_path = vault_path
        self.file_path = file_path
        # (path, reason) for notes that could not be read
        self.unreadable: list[tuple[Path, str]] = []

    def notes(self) -> list[Path]:
        """All notes to scan, in a stable order."""
        if self.file_path is not None:
            return [self.file_path]

        root = self.vault_path
        if root is None:
            raise ValueError("No vault path to scan")
        notes = [
            path
            for path in root.rglob(f"*{self.NOTE_SUFFIX}")
            if path.is_file() and not _is_hidden(path, root)
        ]
        return sorted(notes)

    def scan(self) -> Iterator[tuple[Path, list[CandidateLine]]]:
        """Yield each note that contains at least one checkbox line."""
        self.unreadable = []
        for path in self.notes():
            lines = self.scan_note(path)
            if lines:
                yield path, lines

    def scan_note(self, path: Path) -> list[CandidateLine]:
        """Return the checkbox lines of one note."""
        try:
            with open(path, encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable note %s: %s", path, e)
            self.unreadable.append((path, str(e)))
            return []

        candidates: list[CandidateLine] = []
        for index, raw in enumerate(split_lines(text)):
            body, _ = strip_terminator(raw)
            if CHECKBOX_PATTERN.match(body):
                candidates.append(CandidateLine(path=path, line=index, text=body))

        logger.debug("Found %d checkbox lines in %s", len(candidates), path)
        return candidates


def _is_hidden(path: Path, root: Path) -> bool:
    """Whether a note sits inside a dot-directory of the vault."""
    relative = path.relative_to(root)
    return any(part.startswith(".") for part in relative.parts[:-1])
