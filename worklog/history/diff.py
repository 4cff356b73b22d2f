"""
Diff computation over a range of work log entries.

Folds the file changes of consecutive entries into one net classification
per path: added, modified or deleted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .entry import ChangeType, FileChange, WorkLogEntry
from .errors import EntryNotFoundError


@dataclass
class WorkLogDiff:
    """
    Net file changes between two points of a branch.

    entries holds the raw range in chronological order.
    """

    from_id: Optional[str]
    to_id: str
    entries: List[WorkLogEntry] = field(default_factory=list)
    files_added: List[str] = field(default_factory=list)
    files_modified: List[str] = field(default_factory=list)
    files_deleted: List[str] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        """Number of distinct paths with a net change."""
        return len(self.files_added) + len(self.files_modified) + len(self.files_deleted)

    def has_changes(self) -> bool:
        """Check if there are any net changes."""
        return self.total_changes > 0

    def summary(self) -> str:
        """Generate a summary of the diff."""
        if not self.has_changes():
            return "No changes"

        parts = []
        if self.files_added:
            parts.append(f"{len(self.files_added)} added")
        if self.files_modified:
            parts.append(f"{len(self.files_modified)} modified")
        if self.files_deleted:
            parts.append(f"{len(self.files_deleted)} deleted")
        return ", ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert diff to dictionary."""
        return {
            "fromId": self.from_id,
            "toId": self.to_id,
            "entries": [e.to_dict() for e in self.entries],
            "totalChanges": self.total_changes,
            "filesAdded": self.files_added,
            "filesModified": self.files_modified,
            "filesDeleted": self.files_deleted,
        }


def _apply_change(net: Dict[str, ChangeType], path: str, change_type: ChangeType) -> None:
    previous = net.get(path)

    if change_type == ChangeType.ADDED:
        net[path] = ChangeType.ADDED
    elif change_type == ChangeType.MODIFIED:
        # A file created in this range stays "added" however often it is edited
        if previous != ChangeType.ADDED:
            net[path] = ChangeType.MODIFIED
    elif change_type == ChangeType.DELETED:
        if previous == ChangeType.ADDED:
            # Created and removed inside the range: no net change
            del net[path]
        else:
            net[path] = ChangeType.DELETED


def collapse_changes(
    changes: Sequence[FileChange],
) -> Tuple[List[str], List[str], List[str]]:
    """
    Fold changes, given in chronological order, into net path sets.

    A rename counts as a delete of old_path followed by an add of path.
    Output lists keep the order in which paths were first seen.

    Args:
        changes: File changes, oldest first

    Returns:
        Tuple of (added, modified, deleted) paths; each path appears once
    """
    net: Dict[str, ChangeType] = {}

    for change in changes:
        if change.type == ChangeType.RENAMED:
            assert change.old_path is not None
            _apply_change(net, change.old_path, ChangeType.DELETED)
            _apply_change(net, change.path, ChangeType.ADDED)
        else:
            _apply_change(net, change.path, change.type)

    added = [p for p, t in net.items() if t == ChangeType.ADDED]
    modified = [p for p, t in net.items() if t == ChangeType.MODIFIED]
    deleted = [p for p, t in net.items() if t == ChangeType.DELETED]
    return added, modified, deleted


def select_range(
    history: Sequence[WorkLogEntry], from_id: Optional[str], to_id: str
) -> List[WorkLogEntry]:
    """
    Select the entries after from_id up to and including to_id.

    Args:
        history: Branch ancestry, newest first (as returned by get_log)
        from_id: Base entry, excluded from the range; None for the root
        to_id: Last entry, included in the range

    Returns:
        Entries of the range, oldest first

    Raises:
        EntryNotFoundError: If an endpoint is not in history
    """
    positions = {entry.id: i for i, entry in enumerate(history)}

    if to_id not in positions:
        raise EntryNotFoundError(f'Entry "{to_id}" not found in log.')
    to_idx = positions[to_id]

    if from_id is None:
        from_idx = len(history)
    elif from_id in positions:
        from_idx = positions[from_id]
    else:
        raise EntryNotFoundError(f'Entry "{from_id}" not found in log.')

    # Endpoints given newest-first are swapped so the older one is the base
    newer, older = min(to_idx, from_idx), max(to_idx, from_idx)
    return list(reversed(history[newer:older]))


def compute_diff(
    history: Sequence[WorkLogEntry], from_id: Optional[str], to_id: str
) -> WorkLogDiff:
    """
    Compute the net diff between two entries of one branch.

    Args:
        history: Branch ancestry, newest first
        from_id: Base entry ID, or None for the beginning of history
        to_id: Target entry ID

    Returns:
        WorkLogDiff with collapsed path sets
    """
    entries = select_range(history, from_id, to_id)
    changes = [change for entry in entries for change in entry.changes]
    added, modified, deleted = collapse_changes(changes)

    return WorkLogDiff(
        from_id=from_id,
        to_id=to_id,
        entries=entries,
        files_added=added,
        files_modified=modified,
        files_deleted=deleted,
    )
