"""
Unit tests for the WorkLog facade.

Tests recording, branching, history walks, diffs, tags, summary and destroy
against a temporary project directory.
"""

import json
from pathlib import Path

import pytest

from worklog.config import StoreConfig
from worklog.history import (
    BranchExistsError,
    BranchNotFoundError,
    ChangeType,
    DefaultBranchProtectedError,
    EntryNotFoundError,
    FileChange,
    LogQuery,
    OperationType,
    SourceBranchMissingError,
    WorkLog,
    WorkLogNotInitializedError,
    destroy_work_log,
    get_diff,
    get_summary,
    has_work_log,
    init_work_log,
    record_entry,
)


def _record(wl: WorkLog, message: str, *changes: FileChange, branch=None, **kwargs):
    return wl.record_entry(
        project_id="game-1",
        operation=kwargs.pop("operation", OperationType.FILE_MODIFY),
        message=message,
        author=kwargs.pop("author", "coder-agent"),
        changes=list(changes),
        branch=branch,
        **kwargs,
    )


class TestInit:
    """Tests for log initialization."""

    def test_init_creates_layout(self, project_dir: Path, clock) -> None:
        """Test files written by init."""
        wl = WorkLog(project_dir, clock=clock)

        assert wl.init("game-1") is True
        assert wl.exists()

        base = project_dir / ".worklog"
        heads = json.loads((base / "heads.json").read_text())
        index = json.loads((base / "index.json").read_text())

        assert heads["main"]["entryId"] is None
        assert heads["main"]["projectId"] == "game-1"
        assert index == {"entries": [], "branches": {"main": None}}
        assert (base / "entries").is_dir()

    def test_init_twice_is_noop(self, work_log: WorkLog) -> None:
        """Test that a second init reports the existing log."""
        assert work_log.init("other") is False
        assert work_log.get_head().project_id == "game-1"

    def test_custom_default_branch(self, project_dir: Path) -> None:
        """Test a configured default branch name."""
        wl = WorkLog(project_dir, StoreConfig(default_branch="trunk"))
        wl.init("game-1")

        assert [h.branch for h in wl.list_branches()] == ["trunk"]
        with pytest.raises(DefaultBranchProtectedError):
            wl.delete_branch("trunk")


class TestRecording:
    """Tests for record_entry and chain integrity."""

    def test_first_entry_has_no_parent(self, work_log: WorkLog) -> None:
        """Test the root entry of a branch."""
        entry = _record(work_log, "Add player", FileChange("a.gd", ChangeType.ADDED))

        assert entry.parent_id is None
        assert work_log.get_head().entry_id == entry.id
        assert work_log.get_entry(entry.id) == entry

    def test_parent_chain(self, work_log: WorkLog) -> None:
        """Test that each entry points at the previous head."""
        entries = [_record(work_log, f"step {i}") for i in range(5)]

        assert entries[0].parent_id is None
        for prev, cur in zip(entries, entries[1:]):
            assert cur.parent_id == prev.id

    def test_index_tracks_every_entry(self, work_log: WorkLog) -> None:
        """Test the global entry list and branch cache."""
        e1 = _record(work_log, "one")
        e2 = _record(work_log, "two")

        index = work_log.storage.load_index()
        assert index.entries == [e1.id, e2.id]
        assert index.branches["main"] == e2.id

    def test_changes_accept_dicts(self, work_log: WorkLog) -> None:
        """Test that changes may be given in JSON form."""
        entry = work_log.record_entry(
            project_id="game-1",
            operation="file-rename",
            message="Move scene",
            author="editor",
            changes=[{"path": "scenes/main.tscn", "type": "renamed", "oldPath": "main.tscn"}],
        )
        assert entry.changes[0].old_path == "main.tscn"

    def test_old_path_on_non_rename_rejected(self, work_log: WorkLog) -> None:
        """Test that new changes may only carry old_path when renamed."""
        with pytest.raises(ValueError, match="only valid for renamed"):
            work_log.record_entry(
                "game-1",
                "file-modify",
                "Edit",
                "editor",
                changes=[{"path": "b.gd", "type": "modified", "oldPath": "a.gd"}],
            )

        assert work_log.get_log() == []

    def test_stored_old_path_on_non_rename_readable(self, work_log: WorkLog) -> None:
        """Test that logs written with old_path on other change types still load."""
        entry = _record(work_log, "Edit", FileChange("b.gd", ChangeType.MODIFIED))
        path = work_log.storage.entries_dir / f"{entry.id}.json"
        data = json.loads(path.read_text())
        data["changes"][0]["oldPath"] = "a.gd"
        path.write_text(json.dumps(data))

        loaded = work_log.get_log()[0]
        assert loaded.changes[0].old_path == "a.gd"
        assert work_log.get_diff(None, entry.id).files_modified == ["b.gd"]

    def test_defaults(self, work_log: WorkLog) -> None:
        """Test defaults of optional fields."""
        entry = work_log.record_entry("game-1", "checkpoint", "Save point", "human")

        assert entry.changes == []
        assert entry.metadata is None
        assert entry.tags is None
        assert entry.timestamp > 0

    def test_metadata_and_tags_persist(self, work_log: WorkLog) -> None:
        """Test that caller data is stored untouched."""
        entry = _record(
            work_log,
            "Generate level",
            operation=OperationType.AI_GENERATION,
            metadata={"model": "gen-1", "tokens": 812, "nested": {"ok": True}},
            tags=["ai"],
        )
        loaded = work_log.get_entry(entry.id)

        assert loaded.metadata == {"model": "gen-1", "tokens": 812, "nested": {"ok": True}}
        assert loaded.tags == ["ai"]

    def test_unknown_branch_raises(self, work_log: WorkLog) -> None:
        """Test recording to a missing branch."""
        with pytest.raises(BranchNotFoundError, match="ghost"):
            _record(work_log, "nope", branch="ghost")

    def test_uninitialized_raises(self, project_dir: Path) -> None:
        """Test recording without a log."""
        with pytest.raises(WorkLogNotInitializedError):
            _record(WorkLog(project_dir), "nope")

    def test_invalid_operation_raises(self, work_log: WorkLog) -> None:
        """Test that unknown operations are rejected before writing."""
        with pytest.raises(ValueError):
            _record(work_log, "bad", operation="deploy")
        assert work_log.storage.load_index().entries == []

    def test_get_missing_entry(self, work_log: WorkLog) -> None:
        """Test soft failure for unknown entries."""
        assert work_log.get_entry("000000000000") is None


class TestBranches:
    """Tests for branch creation, isolation and deletion."""

    def test_create_branch_shares_head(self, work_log: WorkLog) -> None:
        """Test that a new branch starts at the source head."""
        e1 = _record(work_log, "base")
        head = work_log.create_branch("feature")

        assert head.entry_id == e1.id
        assert head.project_id == "game-1"
        assert work_log.storage.load_index().branches["feature"] == e1.id

    def test_create_branch_from_empty(self, work_log: WorkLog) -> None:
        """Test branching before any entry exists."""
        head = work_log.create_branch("feature")
        entry = _record(work_log, "first on feature", branch="feature")

        assert head.entry_id is None
        assert entry.parent_id is None

    def test_create_branch_from_other_branch(self, work_log: WorkLog) -> None:
        """Test forking from a non-default branch."""
        _record(work_log, "base")
        work_log.create_branch("feature")
        f1 = _record(work_log, "feature work", branch="feature")

        head = work_log.create_branch("spike", from_branch="feature")
        assert head.entry_id == f1.id

    def test_create_existing_branch_raises(self, work_log: WorkLog) -> None:
        """Test duplicate branch names."""
        work_log.create_branch("feature")
        with pytest.raises(BranchExistsError):
            work_log.create_branch("feature")
        with pytest.raises(BranchExistsError):
            work_log.create_branch("main")

    def test_missing_source_raises(self, work_log: WorkLog) -> None:
        """Test forking from a missing branch."""
        with pytest.raises(SourceBranchMissingError):
            work_log.create_branch("feature", from_branch="ghost")

    def test_create_branch_uninitialized(self, project_dir: Path) -> None:
        """Test branching without a log."""
        with pytest.raises(WorkLogNotInitializedError):
            WorkLog(project_dir).create_branch("feature")

    def test_branch_isolation(self, work_log: WorkLog) -> None:
        """Test that post-fork entries only show on their branch."""
        shared = _record(work_log, "shared")
        work_log.create_branch("feature")
        on_feature = _record(work_log, "feature only", branch="feature")
        on_main = _record(work_log, "main only")

        main_ids = [e.id for e in work_log.get_log("main")]
        feature_ids = [e.id for e in work_log.get_log("feature")]

        assert main_ids == [on_main.id, shared.id]
        assert feature_ids == [on_feature.id, shared.id]
        assert on_feature.parent_id == shared.id

    def test_recording_advances_only_target(self, work_log: WorkLog) -> None:
        """Test that other heads stay put."""
        base = _record(work_log, "base")
        work_log.create_branch("feature")
        _record(work_log, "feature", branch="feature")

        assert work_log.get_head("main").entry_id == base.id

    def test_list_branches_by_creation(self, work_log: WorkLog) -> None:
        """Test branch listing order."""
        work_log.create_branch("b")
        work_log.create_branch("a")

        assert [h.branch for h in work_log.list_branches()] == ["main", "b", "a"]

    def test_delete_branch(self, work_log: WorkLog) -> None:
        """Test deleting keeps entries but drops the head."""
        _record(work_log, "base")
        work_log.create_branch("feature")
        entry = _record(work_log, "feature", branch="feature")

        assert work_log.delete_branch("feature") is True
        assert work_log.get_head("feature") is None
        assert "feature" not in work_log.storage.load_index().branches
        assert work_log.get_entry(entry.id) is not None
        assert work_log.get_log("feature") == []

    def test_delete_missing_branch(self, work_log: WorkLog) -> None:
        """Test soft failure for unknown branches."""
        assert work_log.delete_branch("ghost") is False

    def test_delete_default_branch_raises(self, work_log: WorkLog) -> None:
        """Test that the default branch is protected."""
        with pytest.raises(DefaultBranchProtectedError):
            work_log.delete_branch("main")


class TestGetLog:
    """Tests for history walks."""

    def test_newest_first(self, work_log: WorkLog) -> None:
        """Test reverse-chronological order."""
        entries = [_record(work_log, f"step {i}") for i in range(4)]
        history = work_log.get_log()

        assert [e.id for e in history] == [e.id for e in reversed(entries)]
        stamps = [e.timestamp for e in history]
        assert stamps == sorted(stamps, reverse=True)

    def test_missing_branch_is_empty(self, work_log: WorkLog) -> None:
        """Test soft failure for unknown branches."""
        assert work_log.get_log("ghost") == []

    def test_uninitialized_is_empty(self, project_dir: Path) -> None:
        """Test history of a project without a log."""
        assert WorkLog(project_dir).get_log() == []

    def test_keyword_filters(self, work_log: WorkLog) -> None:
        """Test filters given as keywords."""
        _record(work_log, "Build web", operation="build-start", author="ci")
        _record(work_log, "Edit player", FileChange("player.gd", ChangeType.MODIFIED))
        _record(work_log, "Build fail", operation="build-fail", author="ci")

        builds = work_log.get_log(author="ci", limit=1)
        assert [e.message for e in builds] == ["Build fail"]

        found = work_log.get_log(search="PLAYER")
        assert [e.message for e in found] == ["Edit player"]

    def test_query_object(self, work_log: WorkLog, clock) -> None:
        """Test filters given as a LogQuery."""
        first = _record(work_log, "one")
        _record(work_log, "two")

        history = work_log.get_log(query=LogQuery(until=first.timestamp))
        assert [e.id for e in history] == [first.id]

    def test_query_and_keywords_conflict(self, work_log: WorkLog) -> None:
        """Test that mixing both filter styles is rejected."""
        with pytest.raises(ValueError):
            work_log.get_log(query=LogQuery(), limit=1)

    def test_walk_stops_at_missing_parent(self, work_log: WorkLog) -> None:
        """Test that a dangling parent truncates history instead of failing."""
        e1 = _record(work_log, "one")
        e2 = _record(work_log, "two")
        (work_log.storage.entries_dir / f"{e1.id}.json").unlink()

        assert [e.id for e in work_log.get_log()] == [e2.id]


class TestDiff:
    """Tests for get_diff against recorded history."""

    def test_add_then_modify(self, work_log: WorkLog) -> None:
        """Test that add followed by modify nets to added."""
        _record(work_log, "create", FileChange("a.gd", ChangeType.ADDED), operation="file-create")
        e2 = _record(work_log, "edit", FileChange("a.gd", ChangeType.MODIFIED))

        diff = work_log.get_diff(None, e2.id)

        assert diff.files_added == ["a.gd"]
        assert diff.files_modified == []
        assert diff.files_deleted == []
        assert diff.total_changes == 1

    def test_add_then_delete(self, work_log: WorkLog) -> None:
        """Test that add followed by delete nets to nothing."""
        _record(work_log, "create", FileChange("t.gd", ChangeType.ADDED))
        e2 = _record(work_log, "remove", FileChange("t.gd", ChangeType.DELETED))

        diff = work_log.get_diff(None, e2.id)

        assert diff.files_added == diff.files_modified == diff.files_deleted == []
        assert diff.total_changes == 0

    def test_rename(self, work_log: WorkLog) -> None:
        """Test a rename of a file that predates the range."""
        e1 = _record(work_log, "create", FileChange("old.gd", ChangeType.ADDED))
        e2 = _record(
            work_log, "move", FileChange("new.gd", ChangeType.RENAMED, old_path="old.gd")
        )

        diff = work_log.get_diff(e1.id, e2.id)

        assert diff.files_added == ["new.gd"]
        assert diff.files_deleted == ["old.gd"]
        assert diff.total_changes == 2

    def test_entries_are_chronological(self, work_log: WorkLog) -> None:
        """Test the raw range order."""
        ids = [_record(work_log, f"step {i}").id for i in range(3)]
        diff = work_log.get_diff(None, ids[-1])
        assert [e.id for e in diff.entries] == ids

    def test_default_branch_resolution(self, work_log: WorkLog) -> None:
        """Test that endpoints only on another branch need that branch named."""
        _record(work_log, "base", FileChange("a.gd", ChangeType.ADDED))
        work_log.create_branch("feature")
        f1 = _record(work_log, "feature", FileChange("b.gd", ChangeType.ADDED), branch="feature")

        with pytest.raises(EntryNotFoundError):
            work_log.get_diff(None, f1.id)

        diff = work_log.get_diff(None, f1.id, branch="feature")
        assert diff.files_added == ["a.gd", "b.gd"]

    def test_unknown_from_raises(self, work_log: WorkLog) -> None:
        """Test a missing base entry."""
        e1 = _record(work_log, "one")
        with pytest.raises(EntryNotFoundError):
            work_log.get_diff("ffffffffffff", e1.id)


class TestTags:
    """Tests for tag mutation."""

    def test_tag_is_idempotent(self, work_log: WorkLog) -> None:
        """Test tag twice returns True then False."""
        entry = _record(work_log, "release")

        assert work_log.tag_entry(entry.id, "v1.0") is True
        assert work_log.tag_entry(entry.id, "v1.0") is False
        assert work_log.get_entry(entry.id).tags == ["v1.0"]

    def test_untag_absent(self, work_log: WorkLog) -> None:
        """Test untagging an entry without the tag."""
        entry = _record(work_log, "release")
        assert work_log.untag_entry(entry.id, "v1.0") is False

        work_log.tag_entry(entry.id, "other")
        assert work_log.untag_entry(entry.id, "v1.0") is False

    def test_tag_round_trip(self, work_log: WorkLog) -> None:
        """Test that tag then untag restores the tag list."""
        entry = _record(work_log, "release", tags=["keep"])

        work_log.tag_entry(entry.id, "tmp")
        work_log.untag_entry(entry.id, "tmp")

        assert work_log.get_entry(entry.id).tags == ["keep"]

    def test_tag_round_trip_from_untagged(self, work_log: WorkLog) -> None:
        """Test that untagging the only tag restores an untagged entry."""
        entry = _record(work_log, "release")
        assert entry.tags is None

        work_log.tag_entry(entry.id, "tmp")
        work_log.untag_entry(entry.id, "tmp")

        assert work_log.get_entry(entry.id).tags is None
        raw = json.loads((work_log.storage.entries_dir / f"{entry.id}.json").read_text())
        assert "tags" not in raw

    def test_missing_entry(self, work_log: WorkLog) -> None:
        """Test soft failure for unknown entries."""
        assert work_log.tag_entry("000000000000", "x") is False
        assert work_log.untag_entry("000000000000", "x") is False

    def test_tag_does_not_change_other_fields(self, work_log: WorkLog) -> None:
        """Test that only tags are mutated."""
        entry = _record(work_log, "release", FileChange("a.gd", ChangeType.ADDED))
        work_log.tag_entry(entry.id, "v1")

        loaded = work_log.get_entry(entry.id)
        loaded.tags = None
        assert loaded == entry

    def test_tags_visible_to_queries(self, work_log: WorkLog) -> None:
        """Test that tag filters see mutated tags."""
        e1 = _record(work_log, "one")
        _record(work_log, "two")
        work_log.tag_entry(e1.id, "milestone")

        assert [e.id for e in work_log.get_log(tags=["milestone"])] == [e1.id]


class TestSummary:
    """Tests for get_summary."""

    def test_uninitialized(self, project_dir: Path) -> None:
        """Test summary without a log."""
        assert WorkLog(project_dir).get_summary() is None

    def test_empty_log(self, work_log: WorkLog) -> None:
        """Test summary right after init."""
        summary = work_log.get_summary()

        assert summary.project_id == "game-1"
        assert summary.total_entries == 0
        assert summary.branches == ["main"]
        assert summary.current_branch == "main"
        assert summary.head_entry_id is None
        assert summary.first_entry is None
        assert summary.last_entry is None
        assert summary.operation_counts == {}

    def test_counts_and_bounds(self, work_log: WorkLog) -> None:
        """Test aggregate counts across branches."""
        e1 = _record(work_log, "a", operation="file-create")
        work_log.create_branch("feature")
        _record(work_log, "b", operation="file-modify", branch="feature")
        e3 = _record(work_log, "c", operation="file-modify")

        summary = work_log.get_summary()

        assert summary.total_entries == 3
        assert summary.branches == ["main", "feature"]
        assert summary.operation_counts == {"file-create": 1, "file-modify": 2}
        assert summary.first_entry == e1.timestamp
        assert summary.last_entry == e3.timestamp

    def test_current_branch_is_last_touched(self, work_log: WorkLog) -> None:
        """Test that the most recently updated head is current."""
        _record(work_log, "base")
        work_log.create_branch("feature")
        f1 = _record(work_log, "feature", branch="feature")

        summary = work_log.get_summary()
        assert summary.current_branch == "feature"
        assert summary.head_entry_id == f1.id

        m2 = _record(work_log, "main again")
        summary = work_log.get_summary()
        assert summary.current_branch == "main"
        assert summary.head_entry_id == m2.id


class TestDestroy:
    """Tests for destroying a log."""

    def test_destroy(self, work_log: WorkLog, project_dir: Path) -> None:
        """Test that destroy removes only the log."""
        _record(work_log, "one")

        assert work_log.destroy() is True
        assert not work_log.exists()
        assert work_log.get_summary() is None
        assert (project_dir / "project.godot").exists()

    def test_destroy_missing(self, project_dir: Path) -> None:
        """Test destroying a log that never existed."""
        assert WorkLog(project_dir).destroy() is False


class TestFunctionApi:
    """Tests for the path-keyed function API."""

    def test_full_cycle(self, project_dir: Path) -> None:
        """Test init, record, diff, summary and destroy by path."""
        assert init_work_log(project_dir, "game-1") is True
        assert has_work_log(project_dir)

        e1 = record_entry(
            project_dir,
            project_id="game-1",
            operation="file-create",
            message="Add a.gd",
            author="agent",
            changes=[FileChange("a.gd", ChangeType.ADDED)],
        )

        assert get_diff(project_dir, None, e1.id).files_added == ["a.gd"]
        assert get_summary(project_dir).total_entries == 1
        assert destroy_work_log(project_dir) is True
        assert not has_work_log(str(project_dir))
