"""
Human-readable renderings of entries and diffs.

For display only; the JSON files are the data contract.
"""

from datetime import datetime, timezone
from typing import List, Optional

from worklog.config import config
from .diff import WorkLogDiff
from .entry import ChangeType, FileChange, WorkLogEntry

_CHANGE_MARKERS = {
    ChangeType.ADDED: "+",
    ChangeType.DELETED: "-",
    ChangeType.MODIFIED: "M",
    ChangeType.RENAMED: "R",
}


def format_timestamp(timestamp: int) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC string."""
    moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_change(change: FileChange) -> str:
    """Render one file change with its marker."""
    marker = _CHANGE_MARKERS[change.type]
    if change.type == ChangeType.RENAMED:
        return f"{marker} {change.old_path} -> {change.path}"
    return f"{marker} {change.path}"


def format_entry_oneline(
    entry: WorkLogEntry, short_id_length: Optional[int] = None
) -> str:
    """
    Format an entry as a single line, like `git log --oneline`.

    Example:
        >>> format_entry_oneline(entry)
        'a1b2c3d [file-create] Add player script (1 file)'
    """
    if short_id_length is None:
        short_id_length = config.store.short_id_length
    short_id = entry.id[:short_id_length]
    count = len(entry.changes)
    suffix = f" ({count} file{'s' if count > 1 else ''})" if count > 0 else ""
    return f"{short_id} [{entry.operation.value}] {entry.message}{suffix}"


def format_entry_full(entry: WorkLogEntry) -> str:
    """Format an entry with full detail, like `git log`."""
    lines: List[str] = [f"entry {entry.id}"]

    if entry.parent_id:
        lines.append(f"Parent: {entry.parent_id}")

    lines.append(f"Author: {entry.author}")
    lines.append(f"Date:   {format_timestamp(entry.timestamp)}")
    lines.append(f"Op:     {entry.operation.value}")

    if entry.tags:
        lines.append(f"Tags:   {', '.join(entry.tags)}")

    lines.extend(["", f"    {entry.message}", ""])

    if entry.changes:
        lines.append("  Changes:")
        for change in entry.changes:
            lines.append(f"    {format_change(change)}")

    return "\n".join(lines)


def format_diff(diff: WorkLogDiff) -> str:
    """Format a diff for display."""
    from_label = diff.from_id or "(root)"

    lines = []
    lines.append("=" * 60)
    lines.append(f"Diff: {from_label} -> {diff.to_id}")
    lines.append("=" * 60)
    lines.append("")
    lines.append(f"Entries: {len(diff.entries)}")
    lines.append(f"Summary: {diff.summary()}")
    lines.append("")

    if diff.has_changes():
        lines.append("Files:")
        lines.append("-" * 60)
        for path in diff.files_added:
            lines.append(f"+ {path}")
        for path in diff.files_modified:
            lines.append(f"M {path}")
        for path in diff.files_deleted:
            lines.append(f"- {path}")
        lines.append("")

    lines.append("=" * 60)
    return "\n".join(lines)
