"""
Branching operation log for a generated project.

Provides git-like operations over a shared history of change events:
recording, branching, querying, diffing and tagging.
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from worklog.config import StoreConfig
from worklog.logging import get_worklog_logger, log_history_operation
from .diff import WorkLogDiff, compute_diff
from .entry import (
    FileChange,
    OperationType,
    WorkLogEntry,
    WorkLogHead,
    WorkLogSummary,
    generate_entry_id,
)
from .errors import (
    BranchExistsError,
    BranchNotFoundError,
    DefaultBranchProtectedError,
    SourceBranchMissingError,
    WorkLogNotInitializedError,
)
from .query import LogQuery
from .storage import WorkLogStorage

log = get_worklog_logger("history")

ChangeInput = Union[FileChange, Mapping[str, Any]]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _to_change(change: ChangeInput) -> FileChange:
    if not isinstance(change, FileChange):
        change = FileChange.from_dict(dict(change))
    change.validate()
    return change


class WorkLog:
    """
    Work log bound to one project directory.

    Provides operations for:
    - Recording entries onto a branch
    - Creating, listing and deleting branches
    - Walking a branch's history with filters
    - Computing collapsed diffs between entries
    - Tagging entries and summarizing the log

    Entries form parent-linked chains; a branch is only a head pointer into
    that shared set, so forks share ancestry and never merge.
    """

    def __init__(
        self,
        project_path: Union[str, Path],
        store_config: Optional[StoreConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Bind a work log to a project directory.

        Args:
            project_path: Project directory containing the log
            store_config: Layout settings (default: global config)
            clock: Returns the current time in epoch milliseconds
        """
        self.storage = WorkLogStorage(project_path, store_config)
        self.default_branch = self.storage.store_config.default_branch
        self._clock = clock or _now_ms

    @property
    def project_path(self) -> Path:
        """Resolved project directory."""
        return self.storage.project_path

    def exists(self) -> bool:
        """Check if the project has a work log."""
        return self.storage.exists()

    def init(self, project_id: str) -> bool:
        """
        Initialize the log with an empty default branch.

        Args:
            project_id: Identifier of the project being logged

        Returns:
            True if freshly initialized, False if a log already exists
        """
        if self.storage.exists():
            return False

        self.storage.create()

        now = self._clock()
        index = self.storage.load_index()
        index.branches = {self.default_branch: None}
        self.storage.save_index(index)

        heads = {
            self.default_branch: WorkLogHead(
                project_id=project_id,
                branch=self.default_branch,
                entry_id=None,
                created_at=now,
                updated_at=now,
            )
        }
        self.storage.save_heads(heads)

        log.info(
            "Initialized work log",
            path=str(self.storage.base_dir),
            project_id=project_id,
            branch=self.default_branch,
        )
        return True

    def record_entry(
        self,
        project_id: str,
        operation: Union[OperationType, str],
        message: str,
        author: str,
        changes: Optional[Iterable[ChangeInput]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        tags: Optional[List[str]] = None,
        branch: Optional[str] = None,
    ) -> WorkLogEntry:
        """
        Record a new entry at the head of a branch.

        Args:
            project_id: Identifier of the project
            operation: Kind of operation performed
            message: Free-text description
            author: Human or agent responsible
            changes: Path-level changes (FileChange or dicts in JSON form)
            metadata: Caller-defined key/value data
            tags: Initial tags
            branch: Target branch (default: default branch)

        Returns:
            The recorded entry

        Raises:
            WorkLogNotInitializedError: If the project has no log
            BranchNotFoundError: If the branch does not exist
            ValueError: If a change carries old_path without being a rename

        Example:
            >>> wl = WorkLog("my-game")
            >>> entry = wl.record_entry(
            ...     "game-1", "file-create", "Add player", "coder-agent",
            ...     changes=[FileChange("player.gd", ChangeType.ADDED)],
            ... )
        """
        self._require_initialized()
        branch = branch or self.default_branch

        heads = self.storage.load_heads()
        if branch not in heads:
            raise BranchNotFoundError(
                f'Branch "{branch}" does not exist. Create it first with create_branch().'
            )

        now = self._clock()
        entry = WorkLogEntry(
            id=generate_entry_id(
                now, message, author, length=self.storage.store_config.id_length
            ),
            parent_id=heads[branch].entry_id,
            project_id=project_id,
            timestamp=now,
            operation=OperationType(operation),
            message=message,
            author=author,
            changes=[_to_change(c) for c in changes or []],
            metadata=metadata,
            tags=list(tags) if tags is not None else None,
        )

        self.storage.save_entry(entry)

        index = self.storage.load_index()
        index.entries.append(entry.id)
        index.branches[branch] = entry.id
        self.storage.save_index(index)

        heads[branch].entry_id = entry.id
        heads[branch].updated_at = now
        self.storage.save_heads(heads)

        log_history_operation(
            log,
            "record",
            entry_id=entry.id,
            branch=branch,
            op=entry.operation.value,
            changes=len(entry.changes),
        )
        return entry

    def get_entry(self, entry_id: str) -> Optional[WorkLogEntry]:
        """Get a single entry by ID, or None if it does not exist."""
        return self.storage.load_entry(entry_id)

    def get_head(self, branch: Optional[str] = None) -> Optional[WorkLogHead]:
        """Get the head record of a branch, or None if it does not exist."""
        return self.storage.load_heads().get(branch or self.default_branch)

    def get_log(
        self,
        branch: Optional[str] = None,
        query: Optional[LogQuery] = None,
        **filters: Any,
    ) -> List[WorkLogEntry]:
        """
        Get the history of a branch, newest first.

        Only the ancestry of the branch head is visited, so entries recorded
        on a sibling branch after the fork point are not included.

        Args:
            branch: Branch to walk (default: default branch)
            query: Filters to apply
            **filters: LogQuery fields, as an alternative to query

        Returns:
            Matching entries, or [] if the branch does not exist

        Example:
            >>> wl.get_log(operation=["build-start", "build-fail"], limit=5)
        """
        if query is not None and filters:
            raise ValueError("Pass either a LogQuery or filter keywords, not both")
        if query is None and filters:
            query = LogQuery(**filters)

        head = self.get_head(branch)
        if head is None:
            return []

        history = self._walk(head.entry_id)
        if query is None:
            return history
        return query.apply(history)

    def create_branch(
        self, branch_name: str, from_branch: Optional[str] = None
    ) -> WorkLogHead:
        """
        Create a branch pointing at the current head of another branch.

        Args:
            branch_name: Name for the new branch
            from_branch: Branch to fork from (default: default branch)

        Returns:
            Head record of the new branch

        Raises:
            WorkLogNotInitializedError: If the project has no log
            BranchExistsError: If branch_name is taken
            SourceBranchMissingError: If from_branch does not exist
        """
        self._require_initialized()
        source = from_branch or self.default_branch

        heads = self.storage.load_heads()
        if branch_name in heads:
            raise BranchExistsError(f'Branch "{branch_name}" already exists.')
        if source not in heads:
            raise SourceBranchMissingError(f'Source branch "{source}" does not exist.')

        now = self._clock()
        new_head = WorkLogHead(
            project_id=heads[source].project_id,
            branch=branch_name,
            entry_id=heads[source].entry_id,
            created_at=now,
            updated_at=now,
        )
        heads[branch_name] = new_head
        self.storage.save_heads(heads)

        index = self.storage.load_index()
        index.branches[branch_name] = new_head.entry_id
        self.storage.save_index(index)

        log.info(
            "Created branch",
            branch=branch_name,
            source=source,
            entry_id=new_head.entry_id,
        )
        return new_head

    def delete_branch(self, branch_name: str) -> bool:
        """
        Delete a branch head. Its entries stay in the store.

        Returns:
            True if deleted, False if the branch did not exist

        Raises:
            DefaultBranchProtectedError: If branch_name is the default branch
        """
        if branch_name == self.default_branch:
            raise DefaultBranchProtectedError(
                f'Cannot delete the default branch "{self.default_branch}".'
            )

        heads = self.storage.load_heads()
        if branch_name not in heads:
            log.warning(f"Branch not found for deletion: {branch_name}")
            return False

        del heads[branch_name]
        self.storage.save_heads(heads)

        index = self.storage.load_index()
        index.branches.pop(branch_name, None)
        self.storage.save_index(index)

        log.info(f"Deleted branch: {branch_name}")
        return True

    def list_branches(self) -> List[WorkLogHead]:
        """List all branch heads, oldest first."""
        heads = self.storage.load_heads()
        return sorted(heads.values(), key=lambda h: h.created_at)

    def get_diff(
        self, from_id: Optional[str], to_id: str, branch: Optional[str] = None
    ) -> WorkLogDiff:
        """
        Compute the net file changes between two entries of a branch.

        Both endpoints are resolved against the history of one branch, the
        default branch unless another is given.

        Args:
            from_id: Base entry (excluded), or None for the start of history
            to_id: Target entry (included)
            branch: Branch whose history resolves the endpoints

        Returns:
            WorkLogDiff

        Raises:
            EntryNotFoundError: If an endpoint is not in the branch history
        """
        history = self.get_log(branch)
        diff = compute_diff(history, from_id, to_id)

        log_history_operation(
            log,
            "diff",
            from_id=from_id,
            to_id=to_id,
            branch=branch or self.default_branch,
            total_changes=diff.total_changes,
        )
        return diff

    def tag_entry(self, entry_id: str, tag: str) -> bool:
        """
        Add a tag to an entry.

        Returns:
            True if added, False if the entry is missing or already tagged
        """
        entry = self.storage.load_entry(entry_id)
        if entry is None:
            log.warning(f"Cannot tag missing entry: {entry_id}")
            return False

        if entry.has_tag(tag):
            return False

        entry.tags = (entry.tags or []) + [tag]
        self.storage.save_entry(entry)

        log_history_operation(log, "tag", entry_id=entry_id, tag=tag)
        return True

    def untag_entry(self, entry_id: str, tag: str) -> bool:
        """
        Remove a tag from an entry.

        Removing the last tag resets tags to None.

        Returns:
            True if removed, False if the entry is missing or lacks the tag
        """
        entry = self.storage.load_entry(entry_id)
        if entry is None:
            log.warning(f"Cannot untag missing entry: {entry_id}")
            return False

        if not entry.has_tag(tag):
            return False

        remaining = [t for t in entry.tags or [] if t != tag]
        entry.tags = remaining or None
        self.storage.save_entry(entry)

        log_history_operation(log, "untag", entry_id=entry_id, tag=tag)
        return True

    def get_summary(self) -> Optional[WorkLogSummary]:
        """
        Summarize the whole log.

        current_branch is the branch whose head was updated most recently.

        Returns:
            WorkLogSummary, or None if the project has no log
        """
        if not self.storage.exists():
            return None

        heads = self.storage.load_heads()
        index = self.storage.load_index()

        operation_counts: Dict[str, int] = {}
        first_timestamp: Optional[int] = None
        last_timestamp: Optional[int] = None

        for entry_id in index.entries:
            entry = self.storage.load_entry(entry_id)
            if entry is None:
                continue

            op = entry.operation.value
            operation_counts[op] = operation_counts.get(op, 0) + 1

            if first_timestamp is None or entry.timestamp < first_timestamp:
                first_timestamp = entry.timestamp
            if last_timestamp is None or entry.timestamp > last_timestamp:
                last_timestamp = entry.timestamp

        current_branch = self.default_branch
        latest_update: Optional[int] = None
        for head in heads.values():
            if latest_update is None or head.updated_at > latest_update:
                latest_update = head.updated_at
                current_branch = head.branch

        default_head = heads.get(self.default_branch)
        current_head = heads.get(current_branch)

        return WorkLogSummary(
            project_id=default_head.project_id if default_head else "",
            total_entries=len(index.entries),
            branches=list(index.branches.keys()),
            current_branch=current_branch,
            head_entry_id=current_head.entry_id if current_head else None,
            first_entry=first_timestamp,
            last_entry=last_timestamp,
            operation_counts=operation_counts,
        )

    def destroy(self) -> bool:
        """
        Remove every persisted file of this log. Irreversible.

        Returns:
            True if removed, False if no log existed
        """
        removed = self.storage.destroy()
        if removed:
            log.warning(f"Destroyed work log at {self.storage.base_dir}")
        return removed

    def _walk(self, entry_id: Optional[str]) -> List[WorkLogEntry]:
        """Follow parent pointers from entry_id back to the root."""
        entries: List[WorkLogEntry] = []
        seen = set()

        while entry_id:
            if entry_id in seen:
                log.error(f"Parent cycle detected at entry {entry_id}")
                break
            seen.add(entry_id)

            entry = self.storage.load_entry(entry_id)
            if entry is None:
                log.warning(f"History truncated, missing entry: {entry_id}")
                break

            entries.append(entry)
            entry_id = entry.parent_id

        return entries

    def _require_initialized(self) -> None:
        if not self.storage.exists():
            raise WorkLogNotInitializedError(
                f"No work log at {self.storage.base_dir}. Initialize it with init()."
            )


# Function-style API, one call per operation, keyed by project path


def init_work_log(project_path: Union[str, Path], project_id: str) -> bool:
    """Initialize a work log. Returns False if one already exists."""
    return WorkLog(project_path).init(project_id)


def has_work_log(project_path: Union[str, Path]) -> bool:
    """Check if a project has a work log."""
    return WorkLog(project_path).exists()


def record_entry(project_path: Union[str, Path], **options: Any) -> WorkLogEntry:
    """Record an entry; options are the keyword arguments of WorkLog.record_entry."""
    return WorkLog(project_path).record_entry(**options)


def get_entry(project_path: Union[str, Path], entry_id: str) -> Optional[WorkLogEntry]:
    """Get a single entry by ID."""
    return WorkLog(project_path).get_entry(entry_id)


def get_log(
    project_path: Union[str, Path], branch: Optional[str] = None, **filters: Any
) -> List[WorkLogEntry]:
    """Get the filtered history of a branch, newest first."""
    return WorkLog(project_path).get_log(branch, **filters)


def create_branch(
    project_path: Union[str, Path], branch_name: str, from_branch: Optional[str] = None
) -> WorkLogHead:
    """Create a branch from the head of another branch."""
    return WorkLog(project_path).create_branch(branch_name, from_branch)


def delete_branch(project_path: Union[str, Path], branch_name: str) -> bool:
    """Delete a non-default branch."""
    return WorkLog(project_path).delete_branch(branch_name)


def list_branches(project_path: Union[str, Path]) -> List[WorkLogHead]:
    """List branch heads, oldest first."""
    return WorkLog(project_path).list_branches()


def get_diff(
    project_path: Union[str, Path],
    from_id: Optional[str],
    to_id: str,
    branch: Optional[str] = None,
) -> WorkLogDiff:
    """Compute the collapsed diff between two entries."""
    return WorkLog(project_path).get_diff(from_id, to_id, branch)


def tag_entry(project_path: Union[str, Path], entry_id: str, tag: str) -> bool:
    """Add a tag to an entry."""
    return WorkLog(project_path).tag_entry(entry_id, tag)


def untag_entry(project_path: Union[str, Path], entry_id: str, tag: str) -> bool:
    """Remove a tag from an entry."""
    return WorkLog(project_path).untag_entry(entry_id, tag)


def get_summary(project_path: Union[str, Path]) -> Optional[WorkLogSummary]:
    """Summarize a project's work log."""
    return WorkLog(project_path).get_summary()


def destroy_work_log(project_path: Union[str, Path]) -> bool:
    """Remove a project's work log entirely."""
    return WorkLog(project_path).destroy()
