"""Tests for the sync engine (both flows, in-memory store)."""

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from sharptask.errors import StoreUnavailableError
from sharptask.models import (
    OutcomeKind,
    StoreDateRole,
    StorePriority,
    StoreStatus,
    StoreTaskPatch,
    WarningKind,
)
from sharptask.parser import parse_line, render_identity
from sharptask.repositories import MemoryTaskStore, VaultScanner
from sharptask.sync import DocumentRewriter, SyncEngine

TZ = ZoneInfo("UTC")


class FailingStore(MemoryTaskStore):
    """Memory store that goes away after a number of creates."""

    def __init__(self, creates_allowed: int) -> None:
        super().__init__()
        self.creates_allowed = creates_allowed

    def create(self, patch):
        if self.writes >= self.creates_allowed:
            raise StoreUnavailableError("task store went away")
        return super().create(patch)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """Create a temporary vault directory."""
    path = tmp_path / "Vault"
    path.mkdir()
    return path


@pytest.fixture
def store() -> MemoryTaskStore:
    return MemoryTaskStore()


def make_engine(store, vault: Path, **kwargs) -> SyncEngine:
    return SyncEngine(store, VaultScanner(vault_path=vault), TZ, vault_path=vault, **kwargs)


def write_note(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
    return path


def lines_of(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


def warning_kinds(report) -> list[WarningKind]:
    return [warning.kind for warning in report.warnings]


class TestMarkdownToStore:
    """Tests for the md-to-tc flow."""

    def test_buy_milk(self, store, vault):
        """A new line is created in the store and gets its identity link."""
        note = write_note(vault / "Inbox.md", "# Inbox\n- [ ] Buy milk 📅 2024-01-10 🔺 #errand\n")

        report = make_engine(store, vault).markdown_to_store()

        assert report.created == 1
        assert report.files_written == [str(note)]
        (task,) = store.query_all_tracked()
        assert task.description == "Buy milk"
        assert task.dates[StoreDateRole.DUE] == datetime(2024, 1, 10, tzinfo=UTC)
        assert task.priority == StorePriority.HIGH
        assert task.next_flag is True
        assert task.tags == ["errand"]
        assert lines_of(note) == [
            "# Inbox",
            f"- [ ] Buy milk 📅 2024-01-10 🔺 #errand {render_identity(task.uuid)}",
        ]

    def test_idempotent(self, store, vault):
        """A second run changes nothing on either side."""
        note = write_note(vault / "Inbox.md", "- [ ] A 📅 2024-01-10\n- [x] B ✅ 2024-01-02\n")
        engine = make_engine(store, vault)
        engine.markdown_to_store()
        content = note.read_bytes()
        writes = store.writes

        report = engine.markdown_to_store()

        assert report.created == 0
        assert report.updated == 0
        assert report.skipped == 2
        assert report.files_written == []
        assert note.read_bytes() == content
        assert store.writes == writes

    def test_identity_stable(self, store, vault):
        """tc-to-md right after md-to-tc leaves the note unchanged."""
        note = write_note(vault / "Inbox.md", "- [ ] Task 🔼 #home 🔨 House\n")
        engine = make_engine(store, vault)
        engine.markdown_to_store()
        content = note.read_bytes()

        report = engine.store_to_markdown()

        assert report.skipped == 1
        assert note.read_bytes() == content

    def test_edit_updates_store(self, store, vault):
        note = write_note(vault / "Inbox.md", "- [ ] Task 🔼\n")
        engine = make_engine(store, vault)
        engine.markdown_to_store()
        note.write_text(note.read_text().replace("- [ ]", "- [x]"))

        report = engine.markdown_to_store()

        assert report.updated == 1
        (task,) = store.query_all_tracked()
        assert task.status == StoreStatus.COMPLETED

    def test_dangling_identity(self, store, vault):
        """An unknown uuid is reported and never recreated."""
        line = f"- [ ] Ghost {render_identity(uuid4())}"
        note = write_note(vault / "Inbox.md", line + "\n")

        report = make_engine(store, vault).markdown_to_store()

        assert len(store) == 0
        assert report.count(OutcomeKind.WARNED) == 1
        assert warning_kinds(report) == [WarningKind.DANGLING_IDENTITY]
        assert lines_of(note) == [line]

    def test_duplicate_identity(self, store, vault):
        """The first line with a uuid wins; later ones are reported."""
        uuid = store.create(StoreTaskPatch(description="Task"))
        write_note(
            vault / "Inbox.md",
            f"- [ ] Task 🔼 {render_identity(uuid)}\n- [ ] Task ⏬ {render_identity(uuid)}\n",
        )

        report = make_engine(store, vault).markdown_to_store()

        assert report.updated == 1
        assert report.count(OutcomeKind.WARNED) == 1
        assert warning_kinds(report) == [WarningKind.DUPLICATE_IDENTITY]
        assert "Inbox.md:1" in report.warnings[0].message
        assert store.query_by_uuid(uuid).priority == StorePriority.MEDIUM

    def test_parse_warnings_reported(self, store, vault):
        write_note(vault / "Inbox.md", "- [ ] Task #bad!tag 📅 someday\n")

        report = make_engine(store, vault).markdown_to_store()

        assert report.created == 1
        assert sorted(warning_kinds(report)) == sorted(
            [WarningKind.TAG_REJECTED, WarningKind.PARSE]
        )
        assert all(w.location.endswith("Inbox.md:1") for w in report.warnings)

    def test_store_unavailable_flushes_created_identities(self, vault):
        """Identities of tasks created before the store went away are written."""
        store = FailingStore(creates_allowed=1)
        note = write_note(vault / "Inbox.md", "- [ ] First\n- [ ] Second\n")

        with pytest.raises(StoreUnavailableError):
            make_engine(store, vault).markdown_to_store()

        (task,) = store.query_all_tracked()
        assert lines_of(note) == [f"- [ ] First {render_identity(task.uuid)}", "- [ ] Second"]

    def test_store_unavailable_at_start(self, store, vault):
        write_note(vault / "Inbox.md", "- [ ] Task\n")
        store.available = False

        with pytest.raises(StoreUnavailableError):
            make_engine(store, vault).markdown_to_store()

    def test_crlf_and_other_lines_preserved(self, store, vault):
        note = write_note(vault / "Inbox.md", "Intro\r\n- [ ] Task\r\n\r\nOutro")

        make_engine(store, vault).markdown_to_store()

        (task,) = store.query_all_tracked()
        expected = f"Intro\r\n- [ ] Task {render_identity(task.uuid)}\r\n\r\nOutro"
        assert note.read_bytes() == expected.encode("utf-8")

    def test_nested_notes_and_hidden_directories(self, store, vault):
        write_note(vault / "Projects" / "Plan.md", "- [ ] Nested\n")
        write_note(vault / ".obsidian" / "Template.md", "- [ ] Hidden\n")
        write_note(vault / "readme.txt", "- [ ] Not a note\n")

        report = make_engine(store, vault).markdown_to_store()

        assert report.created == 1
        assert [task.description for task in store.query_all_tracked()] == ["Nested"]

    def test_unreadable_note_reported(self, store, vault):
        (vault / "Broken.md").write_bytes(b"- [ ] \xff\xfe bad bytes\n")
        write_note(vault / "Good.md", "- [ ] Fine\n")

        report = make_engine(store, vault).markdown_to_store()

        assert report.created == 1
        assert warning_kinds(report) == [WarningKind.UNREADABLE_FILE]

    def test_single_file(self, store, vault):
        note = write_note(vault / "One.md", "- [ ] One\n")
        write_note(vault / "Two.md", "- [ ] Two\n")
        engine = SyncEngine(store, VaultScanner(file_path=note), TZ, vault_path=vault)

        report = engine.markdown_to_store()

        assert report.created == 1
        assert [task.description for task in store.query_all_tracked()] == ["One"]

    def test_stale_line_fails_task(self, store, vault):
        """A line changed on disk during the run is reported as failed."""
        write_note(vault / "Inbox.md", "- [ ] Task\n")
        rewriter = MagicMock(spec=DocumentRewriter)
        rewriter.apply.return_value = [0]

        report = make_engine(store, vault, rewriter=rewriter).markdown_to_store()

        assert report.failed == 1
        assert warning_kinds(report) == [WarningKind.STALE_LINE]
        assert report.files_written == []


class TestStoreToMarkdown:
    """Tests for the tc-to-md flow."""

    def test_priority_change(self, store, vault):
        """A store priority change rewrites only the priority glyph."""
        uuid = store.create(
            StoreTaskPatch(
                description="Task",
                priority=StorePriority.LOW,
                tags=["work"],
                project="Home",
                dates={StoreDateRole.DUE: datetime(2024, 1, 10, tzinfo=UTC)},
            )
        )
        line = f"- [ ] Task 📅 2024-01-10 🔼 #work 🔨 Home {render_identity(uuid)}"
        note = write_note(vault / "Inbox.md", f"# Today\n{line}\n")

        report = make_engine(store, vault).store_to_markdown()

        assert report.updated == 1
        assert lines_of(note) == ["# Today", line.replace("🔼", "🔽")]

    def test_completion_pulled(self, store, vault):
        note = write_note(vault / "Inbox.md", "- [ ] Pay rent 📅 2024-02-01\n")
        engine = make_engine(store, vault)
        engine.markdown_to_store()
        (task,) = store.query_all_tracked()
        store.update(
            task.uuid,
            StoreTaskPatch(
                status=StoreStatus.COMPLETED,
                dates={StoreDateRole.END: datetime(2024, 1, 30, 9, tzinfo=UTC)},
            ),
        )

        engine.store_to_markdown()

        pulled = parse_line(lines_of(note)[0], TZ)
        assert pulled.checkbox_state.value == "done"
        assert lines_of(note) == [
            f"- [x] Pay rent 📅 2024-02-01 ✅ 2024-01-30 {render_identity(task.uuid)}"
        ]

    def test_untracked_lines_untouched(self, store, vault):
        note = write_note(vault / "Inbox.md", "- [ ] Local only\n")

        report = make_engine(store, vault).store_to_markdown()

        assert report.outcomes == []
        assert len(store) == 0
        assert lines_of(note) == ["- [ ] Local only"]

    def test_dangling_identity(self, store, vault):
        line = f"- [ ] Ghost {render_identity(uuid4())}"
        note = write_note(vault / "Inbox.md", line + "\n")

        report = make_engine(store, vault).store_to_markdown()

        assert warning_kinds(report) == [WarningKind.DANGLING_IDENTITY]
        assert lines_of(note) == [line]

    def test_removed_tag_segment_stays_removed(self, store, vault):
        """A segment dropped in the store is not brought back by md-to-tc."""
        uuid = store.create(
            StoreTaskPatch(description="Task", priority=StorePriority.MEDIUM, tags=["work"])
        )
        line = f"- [ ] Task 🔼 #work/project {render_identity(uuid)}"
        note = write_note(vault / "Inbox.md", line + "\n")
        engine = make_engine(store, vault)

        engine.store_to_markdown()
        engine.markdown_to_store()

        assert lines_of(note) == [f"- [ ] Task 🔼 #work {render_identity(uuid)}"]
        assert store.query_by_uuid(uuid).tags == ["work"]

    def test_description_with_marker_not_written(self, store, vault):
        """A store description holding a glyph never leaks into the line."""
        uuid = store.create(StoreTaskPatch(description="Ship ⏫ release"))
        line = f"- [ ] Ship release {render_identity(uuid)}"
        note = write_note(vault / "Inbox.md", line + "\n")

        report = make_engine(store, vault).store_to_markdown()

        assert lines_of(note) == [line]
        assert warning_kinds(report) == [WarningKind.PARSE]
        assert store.query_by_uuid(uuid).priority == StorePriority.NONE
