"""Translation between document tasks and store tasks.

Correspondence tables:

    Document        Store
    --------        -----
    📅 due          due
    ⏳ scheduled    scheduled
    🛫 start        wait
    ➕ created      entry
    ✅ completed    end (status completed)
    ❌ canceled     end (status deleted)

    🔺              H + next tag
    ⏫              H
    🔼              M
    🔽 / ⏬         L   (🔽 when rendering)

Document dates are calendar days; they map to local midnight in the
configured timezone, and store datetimes are compared and rendered by their
calendar day in that timezone.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from ..models import (
    NEXT_TAG,
    CheckboxState,
    DateRole,
    DocumentTask,
    PrioritySymbol,
    StoreDateRole,
    StorePriority,
    StoreStatus,
    StoreTask,
    StoreTaskPatch,
)
from ..parser.markers import (
    DATE_MARKERS,
    IDENTITY_PREFIX,
    MARKER_PATTERN,
    PRIORITY_MARKERS,
    PROJECT_MARKER,
    LineLayout,
    MarkerKind,
    MarkerMatch,
    TagMatch,
    is_forbidden_tag,
    render_identity,
    scan_line,
    scan_tags,
)
from ..parser.task_parser import DATE_FORMAT
from ..utils import local_date, local_midnight, same_local_day

logger = logging.getLogger(__name__)

PRIORITY_TO_STORE: dict[PrioritySymbol | None, tuple[StorePriority, bool]] = {
    PrioritySymbol.HIGHEST: (StorePriority.HIGH, True),
    PrioritySymbol.HIGH: (StorePriority.HIGH, False),
    PrioritySymbol.MEDIUM: (StorePriority.MEDIUM, False),
    PrioritySymbol.LOW: (StorePriority.LOW, False),
    PrioritySymbol.LOWEST: (StorePriority.LOW, False),
    None: (StorePriority.NONE, False),
}

STATE_TO_STATUS = {
    CheckboxState.OPEN: StoreStatus.PENDING,
    CheckboxState.DONE: StoreStatus.COMPLETED,
    CheckboxState.CANCELED: StoreStatus.DELETED,
}

STATUS_TO_STATE = {
    StoreStatus.PENDING: CheckboxState.OPEN,
    StoreStatus.WAITING: CheckboxState.OPEN,
    StoreStatus.COMPLETED: CheckboxState.DONE,
    StoreStatus.DELETED: CheckboxState.CANCELED,
}

# Document roles that map 1:1 onto a store date
DIRECT_DATE_ROLES = {
    DateRole.DUE: StoreDateRole.DUE,
    DateRole.SCHEDULED: StoreDateRole.SCHEDULED,
    DateRole.START: StoreDateRole.WAIT,
    DateRole.CREATED: StoreDateRole.ENTRY,
}

# Checkbox states whose closing date is stored as end
END_DATE_ROLES = {
    CheckboxState.DONE: DateRole.COMPLETED,
    CheckboxState.CANCELED: DateRole.CANCELED,
}

# Statuses an open checkbox never moves a store task out of
_NOT_REOPENED = frozenset({StoreStatus.COMPLETED, StoreStatus.DELETED, StoreStatus.WAITING})

# Every store task has an entry date; ➕ is kept in step only where the line has one
_NEVER_APPENDED = frozenset({DateRole.CREATED})

Edit = tuple[int, int, str]


def priority_to_document(priority: StorePriority, next_flag: bool) -> PrioritySymbol | None:
    """Pick the glyph for a store priority (🔽 is canonical for L)."""
    if priority is StorePriority.HIGH:
        return PrioritySymbol.HIGHEST if next_flag else PrioritySymbol.HIGH
    if priority is StorePriority.MEDIUM:
        return PrioritySymbol.MEDIUM
    if priority is StorePriority.LOW:
        return PrioritySymbol.LOW
    return None


class AttributeMapper:
    """Translate attributes between the two task models."""

    def __init__(self, tz: ZoneInfo) -> None:
        self.tz = tz

    # --- Document -> store ---

    def to_store(self, task: DocumentTask, current: StoreTask | None = None) -> StoreTaskPatch:
        """Build the store patch carrying every field the document owns.

        Args:
            task: Parsed document task
            current: The store task being updated, if any. Used so an open
                checkbox never reopens a completed or deleted task.
        """
        priority, next_flag = PRIORITY_TO_STORE[task.priority_symbol]
        values: dict = {
            "description": task.description,
            "priority": priority,
            "next_flag": next_flag,
            "tags": list(task.tags),
            "project": task.project,
        }

        status = STATE_TO_STATUS[task.checkbox_state]
        if (
            status is StoreStatus.PENDING
            and current is not None
            and current.status in _NOT_REOPENED
        ):
            logger.debug(
                "Keeping %s status of %s for open checkbox", current.status.value, current.uuid
            )
        else:
            values["status"] = status

        dates: dict[StoreDateRole, datetime | None] = {}
        for doc_role, store_role in DIRECT_DATE_ROLES.items():
            day = task.dates.get(doc_role)
            if store_role is StoreDateRole.ENTRY and day is None:
                # Every store task has an entry date; never clear it
                continue
            dates[store_role] = self._instant(day)

        end_role = END_DATE_ROLES.get(task.checkbox_state)
        if end_role is not None and end_role in task.dates:
            dates[StoreDateRole.END] = self._instant(task.dates[end_role])
        values["dates"] = dates

        return StoreTaskPatch(**values)

    def changes(self, patch: StoreTaskPatch, current: StoreTask) -> StoreTaskPatch:
        """Restrict a patch to the fields that differ from the stored task.

        Dates are compared by calendar day in the configured timezone, so a
        document day never overwrites a store time on that same day.
        """
        fields = patch.model_fields_set
        changed: dict = {}

        if "description" in fields and patch.description != current.description:
            changed["description"] = patch.description
        if "status" in fields and patch.status is not None and patch.status != current.status:
            changed["status"] = patch.status
        if "priority" in fields and (patch.priority or StorePriority.NONE) != current.priority:
            changed["priority"] = patch.priority
        if "next_flag" in fields and bool(patch.next_flag) != current.next_flag:
            changed["next_flag"] = patch.next_flag
        if "tags" in fields and set(patch.tags or []) - {NEXT_TAG} != set(current.tags):
            changed["tags"] = patch.tags
        if "project" in fields and (patch.project or None) != current.project:
            changed["project"] = patch.project

        dates = {
            role: value
            for role, value in patch.dates.items()
            if not same_local_day(value, current.dates.get(role), self.tz)
        }
        if dates:
            changed["dates"] = dates

        return StoreTaskPatch(**changed)

    # --- Store -> document ---

    def to_document(self, task: StoreTask, existing_raw_text: str) -> str:
        """Render a store task's values into an existing task line.

        Only the spans of changed fields are rewritten; indentation, the
        description (unless it changed), unrecognised text and markers that
        already agree are left byte-for-byte. Missing markers are appended
        in canonical order just before the identity link. A description
        that ``description_conflict`` rejects is not written. A metadata tag
        token keeps only the hierarchy segments still on the store task.

        Raises:
            ValueError: If ``existing_raw_text`` is not a task line
        """
        layout = scan_line(existing_raw_text)
        if layout is None:
            raise ValueError(f"Not a task line: {existing_raw_text!r}")

        line = layout.line
        edits: list[Edit] = []
        additions: list[str] = []

        # Checkbox
        state = STATUS_TO_STATE[task.status]
        if CheckboxState.from_char(layout.state_char) != state:
            edits.append((layout.state_index, layout.state_index + 1, state.char))

        # Description
        description = layout.description
        if (
            task.description
            and task.description != layout.description
            and self.description_conflict(task) is None
        ):
            description = task.description
            edits.append((layout.description_start, layout.description_end, description))

        # Dates, in canonical order
        first_dates = self._first_markers(layout, MarkerKind.DATE)
        desired_dates = self._document_dates(task)
        for role, spec in DATE_MARKERS.items():
            day = desired_dates.get(role)
            marker = first_dates.get(role)
            if marker is None:
                if day is not None and role not in _NEVER_APPENDED:
                    additions.append(spec.render(day.isoformat()))
            elif day is None:
                edits.append(_removal(line, marker))
            elif _marker_date(marker) != day:
                edits.append((marker.start, marker.end, spec.render(day.isoformat())))

        # Priority
        symbol = priority_to_document(task.priority, task.next_flag)
        priority_marker = self._first_markers(layout, MarkerKind.PRIORITY).get(MarkerKind.PRIORITY)
        if priority_marker is None:
            if symbol is not None:
                additions.append(PRIORITY_MARKERS[symbol].render())
        elif symbol is None:
            edits.append(_removal(line, priority_marker))
        elif PRIORITY_TO_STORE[priority_marker.spec.priority] != (task.priority, task.next_flag):
            edits.append(
                (priority_marker.start, priority_marker.end, PRIORITY_MARKERS[symbol].render())
            )

        # Tags
        store_tags = set(task.tags)
        present = {
            segment
            for tag in scan_tags(description)
            for segment in tag.segments
            if not is_forbidden_tag(segment)
        }
        for token in layout.tags:
            if layout.in_description(token.start):
                continue
            segments = [segment for segment in token.segments if not is_forbidden_tag(segment)]
            kept = [segment for segment in segments if segment in store_tags]
            if len(kept) < len(segments):
                if kept:
                    edits.append((token.start, token.end, "#" + "/".join(kept)))
                else:
                    edits.append(_removal(line, token))
            present.update(kept)
        for tag in task.tags:
            if tag not in present:
                additions.append(f"#{tag}")
                present.add(tag)

        # Project
        project_marker = self._first_markers(layout, MarkerKind.PROJECT).get(MarkerKind.PROJECT)
        if project_marker is None:
            if task.project:
                additions.append(PROJECT_MARKER.render(task.project))
        elif not task.project:
            edits.append(_removal(line, project_marker))
        elif project_marker.value != task.project:
            edits.append(
                (project_marker.start, project_marker.end, PROJECT_MARKER.render(task.project))
            )

        if additions:
            edits.append(_insertion(layout, " ".join(additions)))

        return _apply_edits(line, edits)

    def description_conflict(self, task: StoreTask) -> str | None:
        """Why a store description cannot be written into a line, if it cannot.

        Text that would read back as metadata (a marker glyph, an identity
        link or a tag the store task does not carry) is never written.
        """
        description = task.description
        glyph = MARKER_PATTERN.search(description)
        if glyph is not None:
            return f"description contains marker {glyph.group(1)}"
        if IDENTITY_PREFIX in description:
            return "description contains an identity link"
        store_tags = set(task.tags)
        for tag in scan_tags(description):
            if any(s not in store_tags for s in tag.segments if not is_forbidden_tag(s)):
                return f"description contains tag #{tag.text} the task does not carry"
        return None

    def embed_identity(self, raw_text: str, uuid: UUID) -> str:
        """Attach the identity link to a line, replacing a malformed one.

        The identity link always ends the line's content; trailing
        whitespace is kept.
        """
        marker = render_identity(uuid)
        layout = scan_line(raw_text)
        if layout is not None and layout.identity is not None:
            edit = (layout.identity.start, layout.identity.end, marker)
            return _apply_edits(raw_text, [edit])

        body = raw_text.rstrip()
        return f"{body} {marker}{raw_text[len(body):]}"

    # --- Internal ---

    def _instant(self, day: date | None) -> datetime | None:
        if day is None:
            return None
        return local_midnight(day, self.tz)

    def _day(self, value: datetime | None) -> date | None:
        if value is None:
            return None
        return local_date(value, self.tz)

    def _document_dates(self, task: StoreTask) -> dict[DateRole, date | None]:
        dates: dict[DateRole, date | None] = {
            doc_role: self._day(task.dates.get(store_role))
            for doc_role, store_role in DIRECT_DATE_ROLES.items()
        }
        end = self._day(task.dates.get(StoreDateRole.END))
        dates[DateRole.COMPLETED] = end if task.status is StoreStatus.COMPLETED else None
        dates[DateRole.CANCELED] = end if task.status is StoreStatus.DELETED else None
        return dates

    @staticmethod
    def _first_markers(layout: LineLayout, kind: MarkerKind) -> dict:
        """First marker of each date role (or of the kind itself)."""
        first: dict = {}
        for marker in layout.markers:
            if marker.spec.kind is not kind:
                continue
            key = marker.spec.date_role if kind is MarkerKind.DATE else kind
            first.setdefault(key, marker)
        return first


def _marker_date(marker: MarkerMatch) -> date | None:
    if marker.value is None:
        return None
    try:
        return datetime.strptime(marker.value, DATE_FORMAT).date()
    except ValueError:
        return None


def _removal(line: str, span: MarkerMatch | TagMatch) -> Edit:
    """Delete a span together with the single space in front of it."""
    start, end = span.start, span.end
    if start > 0 and line[start - 1] == " ":
        start -= 1
    return (start, end, "")


def _insertion(layout: LineLayout, text: str) -> Edit:
    """Insert appended markers before the identity link or after the content."""
    line = layout.line
    if layout.identity is not None:
        position = layout.identity.start
        prefix = "" if position == 0 or line[position - 1].isspace() else " "
        return (position, position, f"{prefix}{text} ")
    position = layout.content_end
    return (position, position, f" {text}")


def _apply_edits(line: str, edits: list[Edit]) -> str:
    """Apply non-overlapping edits from the end of the line backwards."""
    for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
        line = line[:start] + replacement + line[end:]
    return line
