"""
Branching operation log.

Provides git-like recording, branching, querying, diffing and tagging over a
project's change history.
"""

from .entry import (
    OperationType,
    ChangeType,
    FileChange,
    WorkLogEntry,
    WorkLogHead,
    WorkLogIndex,
    WorkLogSummary,
    generate_entry_id,
    compute_content_hash,
)

from .errors import (
    WorkLogError,
    WorkLogNotInitializedError,
    BranchNotFoundError,
    BranchExistsError,
    SourceBranchMissingError,
    DefaultBranchProtectedError,
    EntryNotFoundError,
    CorruptedFileError,
)

from .diff import WorkLogDiff, collapse_changes, compute_diff
from .query import LogQuery
from .storage import WorkLogStorage
from .formatting import format_entry_oneline, format_entry_full, format_diff

from .work_log import (
    WorkLog,
    init_work_log,
    has_work_log,
    record_entry,
    get_entry,
    get_log,
    create_branch,
    delete_branch,
    list_branches,
    get_diff,
    tag_entry,
    untag_entry,
    get_summary,
    destroy_work_log,
)

__all__ = [
    # Entries
    "OperationType",
    "ChangeType",
    "FileChange",
    "WorkLogEntry",
    "WorkLogHead",
    "WorkLogIndex",
    "WorkLogSummary",
    "generate_entry_id",
    "compute_content_hash",
    # Errors
    "WorkLogError",
    "WorkLogNotInitializedError",
    "BranchNotFoundError",
    "BranchExistsError",
    "SourceBranchMissingError",
    "DefaultBranchProtectedError",
    "EntryNotFoundError",
    "CorruptedFileError",
    # Diff and query
    "WorkLogDiff",
    "collapse_changes",
    "compute_diff",
    "LogQuery",
    # Storage
    "WorkLogStorage",
    # Formatting
    "format_entry_oneline",
    "format_entry_full",
    "format_diff",
    # Work log
    "WorkLog",
    "init_work_log",
    "has_work_log",
    "record_entry",
    "get_entry",
    "get_log",
    "create_branch",
    "delete_branch",
    "list_branches",
    "get_diff",
    "tag_entry",
    "untag_entry",
    "get_summary",
    "destroy_work_log",
]
