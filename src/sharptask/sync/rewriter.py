"""Line-level rewriting of markdown notes.

A note is rewritten by replacing whole lines. Every other byte of the file,
including each line's terminator (``\\n`` or ``\\r\\n``) and a missing final
newline, is written back unchanged.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from ..utils import split_lines, strip_terminator

logger = logging.getLogger(__name__)

# line index -> (text seen when scanning, replacement text); both without terminator
LineEdits = dict[int, tuple[str, str]]


class DocumentRewriter:
    """Apply line replacements to a note on disk."""

    def apply(self, path: Path, edits: LineEdits) -> list[int]:
        """Replace the given lines of a note.

        A line whose current text is no longer the text seen when scanning
        is left alone and reported. The note is written through a temporary
        sibling file and atomically moved into place; nothing is written
        when no line actually changes.

        Args:
            path: Note to rewrite
            edits: Line index to ``(expected_old_text, new_text)``

        Returns:
            Indexes of lines that were stale and therefore not written
        """
        if not edits:
            return []

        with open(path, encoding="utf-8", newline="") as f:
            lines = split_lines(f.read())

        stale: list[int] = []
        changed = False
        for index in sorted(edits):
            expected, replacement = edits[index]
            if index >= len(lines):
                stale.append(index)
                continue

            body, ending = strip_terminator(lines[index])
            if body != expected:
                logger.warning("Line %d of %s changed since it was scanned", index + 1, path)
                stale.append(index)
                continue
            if replacement != body:
                lines[index] = replacement + ending
                changed = True

        if changed:
            self._write(path, "".join(lines))
            logger.info("Rewrote %s", path)
        return stale

    def _write(self, path: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            shutil.copymode(path, tmp_name)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
