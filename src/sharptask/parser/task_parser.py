"""Parse a markdown checkbox line into a DocumentTask."""

from datetime import date, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from ..models import (
    CheckboxState,
    DateRole,
    DocumentTask,
    PrioritySymbol,
    SourceLocation,
    SyncWarning,
    WarningKind,
)
from ..utils import local_midnight
from .markers import MarkerKind, is_forbidden_tag, scan_line

DATE_FORMAT = "%Y-%m-%d"


def parse_line(
    line: str,
    tz: ZoneInfo,
    location: SourceLocation | None = None,
) -> DocumentTask | None:
    """Parse one line of a note.

    Args:
        line: The line, without its line terminator
        tz: Timezone used to resolve date expressions
        location: Where the line came from, for rewriting and reports

    Returns:
        DocumentTask, or None if the line is not a task (no checkbox, or a
        checkbox with no description). Malformed fields are dropped and
        recorded in ``DocumentTask.warnings``; nothing is logged here.
    """
    layout = scan_line(line)
    if layout is None:
        return None

    description = layout.description
    if not description:
        return None

    where = str(location) if location is not None else None
    warnings: list[SyncWarning] = []

    def warn(kind: WarningKind, message: str) -> None:
        warnings.append(SyncWarning(kind=kind, message=message, location=where))

    identity: UUID | None = None
    if layout.identity is not None:
        try:
            identity = UUID(layout.identity.value)
        except ValueError:
            warn(WarningKind.PARSE, f"Invalid task uuid '{layout.identity.value}' ignored")

    dates: dict[DateRole, date] = {}
    seen_roles: set[DateRole] = set()
    priority: PrioritySymbol | None = None
    project: str | None = None
    seen_project = False

    for marker in layout.markers:
        spec = marker.spec
        if spec.kind is MarkerKind.DATE and spec.date_role is not None:
            role = spec.date_role
            if role in seen_roles:
                warn(WarningKind.PARSE, f"Duplicate {role.value} date {spec.glyph} ignored")
                continue
            seen_roles.add(role)
            day, problem = _parse_date(marker.value, tz)
            if day is None:
                warn(WarningKind.PARSE, f"{role.value.capitalize()} date dropped: {problem}")
                continue
            dates[role] = day

        elif spec.kind is MarkerKind.PRIORITY:
            # First priority glyph wins
            if priority is not None:
                warn(
                    WarningKind.PARSE,
                    f"Extra priority {spec.glyph} ignored, keeping {priority.value}",
                )
                continue
            priority = spec.priority

        elif spec.kind is MarkerKind.PROJECT:
            if seen_project:
                warn(WarningKind.PARSE, f"Extra project '{marker.value or ''}' ignored")
                continue
            seen_project = True
            if marker.value is None:
                warn(WarningKind.PARSE, f"Empty project {spec.glyph} ignored")
                continue
            project = marker.value

    tags: list[str] = []
    for tag in layout.tags:
        for segment in tag.segments:
            if is_forbidden_tag(segment):
                warn(WarningKind.TAG_REJECTED, f"Tag '{segment}' has forbidden characters")
                continue
            if segment not in tags:
                tags.append(segment)

    return DocumentTask(
        raw_text=line,
        description=description,
        checkbox_state=CheckboxState.from_char(layout.state_char) or CheckboxState.OPEN,
        dates=dates,
        priority_symbol=priority,
        tags=tags,
        project=project,
        identity=identity,
        source_location=location,
        warnings=warnings,
    )


def _parse_date(value: str | None, tz: ZoneInfo) -> tuple[date | None, str]:
    """Parse a YYYY-MM-DD expression, checking local midnight exists in tz."""
    if value is None:
        return None, "no date given"
    try:
        day = datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None, f"cannot parse '{value}'"
    if local_midnight(day, tz) is None:
        return None, f"{value} has no midnight in {tz.key}"
    return day, ""
