"""Tests for the markdown task line parser."""

from datetime import date
from pathlib import Path
from uuid import UUID
from zoneinfo import ZoneInfo

import pytest

from sharptask.models import (
    CheckboxState,
    DateRole,
    PrioritySymbol,
    SourceLocation,
    WarningKind,
)
from sharptask.parser import parse_line

UUID_TEXT = "1b4e28ba-2fa1-11d2-883f-0016d3cca427"
IDENTITY = f"[[uuid: {UUID_TEXT}|⚔️]]"


@pytest.fixture
def tz() -> ZoneInfo:
    return ZoneInfo("UTC")


def kinds(task) -> list[WarningKind]:
    return [warning.kind for warning in task.warnings]


class TestCheckbox:
    """Tests for checkbox recognition."""

    def test_plain_text_is_not_a_task(self, tz):
        """Lines without a checkbox are ignored."""
        assert parse_line("Just some text", tz) is None
        assert parse_line("- a bullet", tz) is None

    def test_empty_description_is_not_a_task(self, tz):
        """An empty checkbox placeholder is not a task."""
        assert parse_line("- [ ] ", tz) is None
        assert parse_line("- [ ] 📅 2024-01-10", tz) is None

    def test_checkbox_needs_trailing_space(self, tz):
        """The checkbox must be followed by a space."""
        assert parse_line("- [ ]Buy milk", tz) is None

    @pytest.mark.parametrize(
        ("line", "state"),
        [
            ("- [ ] Task", CheckboxState.OPEN),
            ("- [x] Task", CheckboxState.DONE),
            ("- [X] Task", CheckboxState.DONE),
            ("- [-] Task", CheckboxState.CANCELED),
            ("* [ ] Task", CheckboxState.OPEN),
            ("+ [x] Task", CheckboxState.DONE),
            ("1. [ ] Task", CheckboxState.OPEN),
            ("12) [-] Task", CheckboxState.CANCELED),
            ("    - [ ] Task", CheckboxState.OPEN),
        ],
    )
    def test_checkbox_variants(self, tz, line, state):
        """Bullets, numbered items and indentation are all recognised."""
        task = parse_line(line, tz)
        assert task is not None
        assert task.checkbox_state == state
        assert task.description == "Task"

    def test_raw_text_kept(self, tz):
        """The original line is kept byte-for-byte."""
        line = "  - [ ]  Buy milk   📅 2024-01-10  "
        task = parse_line(line, tz)
        assert task.raw_text == line
        assert task.description == "Buy milk"


class TestFullLine:
    """Tests for a line carrying every kind of field."""

    def test_buy_milk(self, tz):
        """Description, due date, priority and tag are extracted."""
        task = parse_line("- [ ] Buy milk 📅 2024-01-10 🔺 #errand", tz)

        assert task.description == "Buy milk"
        assert task.checkbox_state == CheckboxState.OPEN
        assert task.dates == {DateRole.DUE: date(2024, 1, 10)}
        assert task.priority_symbol == PrioritySymbol.HIGHEST
        assert task.tags == ["errand"]
        assert task.project is None
        assert task.identity is None
        assert not task.is_tracked
        assert task.warnings == []

    def test_all_date_roles(self, tz):
        """Every date glyph maps to its role."""
        line = (
            "- [x] Task 📅 2024-01-10 ⏳ 2024-01-08 🛫 2024-01-05 "
            "➕ 2024-01-01 ✅ 2024-01-09"
        )
        task = parse_line(line, tz)

        assert task.dates == {
            DateRole.DUE: date(2024, 1, 10),
            DateRole.SCHEDULED: date(2024, 1, 8),
            DateRole.START: date(2024, 1, 5),
            DateRole.CREATED: date(2024, 1, 1),
            DateRole.COMPLETED: date(2024, 1, 9),
        }

    def test_canceled_date(self, tz):
        task = parse_line("- [-] Task ❌ 2024-03-01", tz)
        assert task.dates == {DateRole.CANCELED: date(2024, 3, 1)}

    def test_identity(self, tz):
        """The identity link carries the store uuid."""
        task = parse_line(f"- [ ] Task 🔼 {IDENTITY}", tz)

        assert task.identity == UUID(UUID_TEXT)
        assert task.is_tracked
        assert task.priority_symbol == PrioritySymbol.MEDIUM

    def test_identity_ends_description(self, tz):
        """Text before the identity link is the description."""
        task = parse_line(f"- [ ] Call mom {IDENTITY}", tz)
        assert task.description == "Call mom"

    def test_variation_selector_on_glyph(self, tz):
        """Glyphs followed by U+FE0F are still recognised."""
        task = parse_line("- [ ] Task ⏫️", tz)
        assert task.priority_symbol == PrioritySymbol.HIGH

    def test_location_recorded(self, tz):
        """Source location is attached to the task and its warnings."""
        location = SourceLocation(path=Path("notes/todo.md"), line=4)
        task = parse_line("- [ ] Task 📅 someday", tz, location)

        assert task.source_location == location
        assert task.warnings[0].location == "notes/todo.md:5"
        assert task.display() == "notes/todo.md:5 Task"


class TestDates:
    """Tests for date parsing edge cases."""

    def test_unparsable_date_dropped(self, tz):
        """A malformed date is dropped with a parse warning."""
        task = parse_line("- [ ] Task 📅 2024-13-40", tz)

        assert task.dates == {}
        assert kinds(task) == [WarningKind.PARSE]
        assert "2024-13-40" in task.warnings[0].message

    def test_missing_date_dropped(self, tz):
        """A date glyph with no value is dropped with a warning."""
        task = parse_line("- [ ] Task 📅 🔺", tz)

        assert task.dates == {}
        assert task.priority_symbol == PrioritySymbol.HIGHEST
        assert kinds(task) == [WarningKind.PARSE]

    def test_repeated_role_keeps_first(self, tz):
        """A second due date is ignored with a warning."""
        task = parse_line("- [ ] Task 📅 2024-01-10 📅 2024-02-10", tz)

        assert task.dates == {DateRole.DUE: date(2024, 1, 10)}
        assert kinds(task) == [WarningKind.PARSE]

    def test_nonexistent_midnight_dropped(self):
        """A day whose local midnight falls in a DST gap is dropped."""
        tz = ZoneInfo("America/Sao_Paulo")
        task = parse_line("- [ ] Task 📅 2018-11-04", tz)

        assert task.dates == {}
        assert kinds(task) == [WarningKind.PARSE]

    def test_day_after_gap_kept(self):
        tz = ZoneInfo("America/Sao_Paulo")
        task = parse_line("- [ ] Task 📅 2018-11-05", tz)
        assert task.dates[DateRole.DUE] == date(2018, 11, 5)


class TestPriorityAndProject:
    """Tests for priority glyphs and the project marker."""

    @pytest.mark.parametrize("symbol", list(PrioritySymbol))
    def test_each_priority(self, tz, symbol):
        task = parse_line(f"- [ ] Task {symbol.value}", tz)
        assert task.priority_symbol == symbol

    def test_first_priority_wins(self, tz):
        """Only the first priority glyph counts."""
        task = parse_line("- [ ] Task 🔺 ⏬", tz)

        assert task.priority_symbol == PrioritySymbol.HIGHEST
        assert kinds(task) == [WarningKind.PARSE]

    def test_project_runs_to_next_tag(self, tz):
        """Project text stops at the next tag."""
        task = parse_line("- [ ] Task 🔨 Home Office #errand", tz)

        assert task.project == "Home Office"
        assert task.tags == ["errand"]

    def test_project_runs_to_identity(self, tz):
        task = parse_line(f"- [ ] Task 🔨 Garden {IDENTITY}", tz)
        assert task.project == "Garden"

    def test_project_runs_to_next_glyph(self, tz):
        task = parse_line("- [ ] Task 🔨 Garden 📅 2024-01-10", tz)

        assert task.project == "Garden"
        assert task.dates[DateRole.DUE] == date(2024, 1, 10)

    def test_empty_project_ignored(self, tz):
        task = parse_line("- [ ] Task 🔨", tz)

        assert task.project is None
        assert kinds(task) == [WarningKind.PARSE]

    def test_repeated_project_keeps_first(self, tz):
        task = parse_line("- [ ] Task 🔨 One 🔨 Two", tz)

        assert task.project == "One"
        assert kinds(task) == [WarningKind.PARSE]

    def test_opaque_markers_pass_through(self, tz):
        """Recurrence text does not leak into other fields."""
        task = parse_line("- [ ] Water plants 🔁 every week 📅 2024-01-10", tz)

        assert task.description == "Water plants"
        assert task.dates[DateRole.DUE] == date(2024, 1, 10)
        assert task.warnings == []


class TestTags:
    """Tests for #tag extraction."""

    def test_hierarchy_split(self, tz):
        """A nested tag yields one tag per segment."""
        task = parse_line("- [ ] Task #work/project/sub", tz)
        assert task.tags == ["work", "project", "sub"]

    def test_tags_in_description_stay_in_description(self, tz):
        """Inline tags are extracted but not removed from the text."""
        task = parse_line("- [ ] Fix #bug in parser 📅 2024-01-10", tz)

        assert task.description == "Fix #bug in parser"
        assert task.tags == ["bug"]

    def test_duplicates_removed(self, tz):
        task = parse_line("- [ ] Task #a #b #a/c", tz)
        assert task.tags == ["a", "b", "c"]

    def test_forbidden_characters_rejected(self, tz):
        """Segments with forbidden characters are dropped with a warning."""
        task = parse_line("- [ ] Task #ok #bad!tag #fine/no$pe", tz)

        assert task.tags == ["ok", "fine"]
        assert kinds(task) == [WarningKind.TAG_REJECTED, WarningKind.TAG_REJECTED]

    def test_numeric_reference_is_not_a_tag(self, tz):
        task = parse_line("- [ ] Close issue #12", tz)

        assert task.tags == []
        assert task.warnings == []

    def test_hash_inside_word_is_not_a_tag(self, tz):
        task = parse_line("- [ ] Learn C# today", tz)
        assert task.tags == []

    def test_tag_cut_at_glyph(self, tz):
        """A glyph glued to a tag ends the tag."""
        task = parse_line("- [ ] Task #home📅 2024-01-10", tz)

        assert task.tags == ["home"]
        assert task.dates[DateRole.DUE] == date(2024, 1, 10)

    def test_tag_cut_at_identity_link(self, tz):
        """A tag glued to the identity link does not swallow it."""
        task = parse_line(f"- [ ] Task #home{IDENTITY}", tz)

        assert task.tags == ["home"]
        assert task.identity == UUID(UUID_TEXT)
        assert task.warnings == []

    def test_malformed_identity_ignored(self, tz):
        """A malformed uuid is ignored with a parse warning."""
        task = parse_line("- [ ] Task [[uuid: not-a-uuid|⚔️]]", tz)

        assert task.identity is None
        assert kinds(task) == [WarningKind.PARSE]
