"""Line splitting that keeps line terminators intact."""

import re

_LINE_PATTERN = re.compile(r"[^\n]*\n|[^\n]+$")


def split_lines(text: str) -> list[str]:
    """Split text into lines, each keeping its own terminator.

    Only "\\n" ends a line, so "\\r\\n" endings stay attached to their line and
    ``"".join(split_lines(text)) == text`` always holds.
    """
    return _LINE_PATTERN.findall(text)


def strip_terminator(line: str) -> tuple[str, str]:
    """Separate a line from its terminator ("\\n", "\\r\\n" or "")."""
    body = line.rstrip("\r\n")
    return body, line[len(body) :]
