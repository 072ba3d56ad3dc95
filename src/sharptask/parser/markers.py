"""Inline marker table and line scanner.

Task metadata lives inline on the checkbox line as emoji markers
(Obsidian Tasks format):

    - [ ] Buy milk #errand 📅 2024-01-10 🔺 🔨 Home [[uuid: <uuid>|⚔️]]

``MARKERS`` is the single table of recognised glyphs. Both the parser and
the renderer go through ``scan_line``, which locates every marker, tag and
identity span in a line, so extraction and rendering stay symmetric.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from ..models import DateRole, PrioritySymbol


class MarkerKind(str, Enum):
    """How the text following a glyph is interpreted."""

    DATE = "date"  # Glyph followed by a YYYY-MM-DD expression
    PRIORITY = "priority"  # Glyph alone
    PROJECT = "project"  # Glyph followed by free text
    OPAQUE = "opaque"  # Recognised but never synced (recurrence, id, depends-on)


@dataclass(frozen=True)
class MarkerSpec:
    """One recognised marker glyph and the field it carries."""

    glyph: str
    kind: MarkerKind
    date_role: DateRole | None = None
    priority: PrioritySymbol | None = None

    def render(self, value: str | None = None) -> str:
        """Render the marker with an optional value."""
        if value is None:
            return self.glyph
        return f"{self.glyph} {value}"


MARKERS: tuple[MarkerSpec, ...] = (
    MarkerSpec("📅", MarkerKind.DATE, date_role=DateRole.DUE),
    MarkerSpec("⏳", MarkerKind.DATE, date_role=DateRole.SCHEDULED),
    MarkerSpec("🛫", MarkerKind.DATE, date_role=DateRole.START),
    MarkerSpec("➕", MarkerKind.DATE, date_role=DateRole.CREATED),
    MarkerSpec("✅", MarkerKind.DATE, date_role=DateRole.COMPLETED),
    MarkerSpec("❌", MarkerKind.DATE, date_role=DateRole.CANCELED),
    MarkerSpec(PrioritySymbol.HIGHEST.value, MarkerKind.PRIORITY, priority=PrioritySymbol.HIGHEST),
    MarkerSpec(PrioritySymbol.HIGH.value, MarkerKind.PRIORITY, priority=PrioritySymbol.HIGH),
    MarkerSpec(PrioritySymbol.MEDIUM.value, MarkerKind.PRIORITY, priority=PrioritySymbol.MEDIUM),
    MarkerSpec(PrioritySymbol.LOW.value, MarkerKind.PRIORITY, priority=PrioritySymbol.LOW),
    MarkerSpec(PrioritySymbol.LOWEST.value, MarkerKind.PRIORITY, priority=PrioritySymbol.LOWEST),
    MarkerSpec("🔨", MarkerKind.PROJECT),
    MarkerSpec("🔁", MarkerKind.OPAQUE),
    MarkerSpec("🆔", MarkerKind.OPAQUE),
    MarkerSpec("⛔", MarkerKind.OPAQUE),
)

# Canonical order of dates when markers are appended
DATE_MARKERS: dict[DateRole, MarkerSpec] = {
    spec.date_role: spec for spec in MARKERS if spec.date_role is not None
}
PRIORITY_MARKERS: dict[PrioritySymbol, MarkerSpec] = {
    spec.priority: spec for spec in MARKERS if spec.priority is not None
}
PROJECT_MARKER = next(spec for spec in MARKERS if spec.kind is MarkerKind.PROJECT)

_BY_GLYPH = {spec.glyph: spec for spec in MARKERS}

# Glyphs may carry a trailing emoji variation selector (U+FE0F)
MARKER_PATTERN = re.compile(
    "(" + "|".join(re.escape(glyph) for glyph in _BY_GLYPH) + r")\ufe0f?"
)

CHECKBOX_PATTERN = re.compile(
    r"^(?P<indent>\s*)(?P<bullet>[-*+]|\d+[.)]) \[(?P<state>[ xX\-])\] "
)

IDENTITY_GLYPH = "\u2694\ufe0f"
IDENTITY_PREFIX = "[[uuid:"
IDENTITY_PATTERN = re.compile(r"\[\[uuid:\s*(?P<uuid>[^|\]]*?)\s*\|\u2694\ufe0f?\]\]")

# A tag starts with '#' at the start of a word; forbidden characters are
# kept in the token so they can be reported rather than silently cut off
TAG_PATTERN = re.compile(r"(?<!\S)#(?P<tag>[^\s#]\S*)")

DATE_VALUE_PATTERN = re.compile(r"[ \t]*(?P<value>[\w\-/.:]+)")

FORBIDDEN_TAG_CHARACTERS = frozenset(' !@#$%^&*(),.?":{}|<>')


def render_identity(uuid: UUID) -> str:
    """Render the display-hidden link that carries a store uuid."""
    return f"{IDENTITY_PREFIX} {uuid}|{IDENTITY_GLYPH}]]"


def is_forbidden_tag(tag: str) -> bool:
    """Whether a tag segment contains a space or a forbidden character."""
    return any(char in FORBIDDEN_TAG_CHARACTERS for char in tag)


@dataclass(frozen=True)
class MarkerMatch:
    """A marker glyph and its value located in a line."""

    spec: MarkerSpec
    start: int
    end: int
    value: str | None  # None when the glyph has no (or an empty) value


@dataclass(frozen=True)
class TagMatch:
    """A #tag token located in a line (``text`` excludes the '#')."""

    start: int
    end: int
    text: str

    @property
    def segments(self) -> list[str]:
        """Hierarchy segments of the tag, empty ones dropped."""
        return [segment for segment in self.text.split("/") if segment]


@dataclass(frozen=True)
class IdentityMatch:
    """The identity link located in a line."""

    start: int
    end: int
    value: str


@dataclass(frozen=True)
class LineLayout:
    """Positions of every recognised element of a checkbox line."""

    line: str
    state_char: str
    state_index: int
    description_start: int
    description_end: int
    markers: list[MarkerMatch]
    tags: list[TagMatch]
    identity: IdentityMatch | None

    @property
    def description(self) -> str:
        return self.line[self.description_start : self.description_end]

    @property
    def content_end(self) -> int:
        """Index just past the last non-whitespace character."""
        return len(self.line.rstrip())

    def in_description(self, position: int) -> bool:
        return self.description_start <= position < self.description_end


def scan_line(line: str) -> LineLayout | None:
    """Locate the checkbox, markers, tags and identity link in a line.

    Returns None when the line has no checkbox. Performs no validation of
    values; that is the parser's job.
    """
    checkbox = CHECKBOX_PATTERN.match(line)
    if checkbox is None:
        return None
    body_start = checkbox.end()

    identity = None
    identity_match = IDENTITY_PATTERN.search(line, body_start)
    if identity_match is not None:
        identity = IdentityMatch(
            start=identity_match.start(),
            end=identity_match.end(),
            value=identity_match.group("uuid"),
        )

    def outside_identity(position: int) -> bool:
        return identity is None or not (identity.start <= position < identity.end)

    glyphs = [
        match
        for match in MARKER_PATTERN.finditer(line, body_start)
        if outside_identity(match.start())
    ]
    tags = _scan_tags(line, body_start, outside_identity)

    # Free-text values run until the next glyph, tag or identity link
    boundaries = sorted(
        [match.start() for match in glyphs]
        + [tag.start for tag in tags]
        + ([identity.start] if identity is not None else [])
    )

    def next_boundary(position: int) -> int:
        return next((b for b in boundaries if b > position), len(line))

    markers: list[MarkerMatch] = []
    for match in glyphs:
        spec = _BY_GLYPH[match.group(1)]
        end = match.end()
        value: str | None = None
        if spec.kind is MarkerKind.DATE:
            value_match = DATE_VALUE_PATTERN.match(line, end)
            if value_match is not None and value_match.end() <= next_boundary(match.start()):
                value = value_match.group("value")
                end = value_match.end()
        elif spec.kind in (MarkerKind.PROJECT, MarkerKind.OPAQUE):
            text = line[end : next_boundary(match.start())]
            if text.strip():
                value = text.strip()
                end += len(text.rstrip())
        markers.append(MarkerMatch(spec=spec, start=match.start(), end=end, value=value))

    description_stop = min(
        [match.start() for match in glyphs]
        + ([identity.start] if identity is not None else [])
        + [len(line)]
    )
    segment = line[body_start:description_stop]
    description_start = body_start + len(segment) - len(segment.lstrip())
    description_end = body_start + len(segment.rstrip())
    description_end = max(description_end, description_start)

    return LineLayout(
        line=line,
        state_char=checkbox.group("state"),
        state_index=checkbox.start("state"),
        description_start=description_start,
        description_end=description_end,
        markers=markers,
        tags=tags,
        identity=identity,
    )


def scan_tags(text: str) -> list[TagMatch]:
    """Find every #tag token in a piece of text."""
    return _scan_tags(text, 0, lambda _: True)


def _scan_tags(line: str, start: int, keep: Callable[[int], bool]) -> list[TagMatch]:
    """Find #tag tokens, cutting each token at the first marker glyph or link."""
    tags: list[TagMatch] = []
    for match in TAG_PATTERN.finditer(line, start):
        if not keep(match.start()):
            continue
        text = match.group("tag")
        glyph = MARKER_PATTERN.search(text)
        if glyph is not None:
            text = text[: glyph.start()]
        link = text.find("[[")
        if link != -1:
            text = text[:link]
        # "#12" is an issue reference, not a tag
        if not text or text.isdigit():
            continue
        tags.append(TagMatch(start=match.start(), end=match.start() + 1 + len(text), text=text))
    return tags
