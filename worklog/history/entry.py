"""
Entry representation for the work log.

Defines the serializable records kept on disk: entries with their file
changes, branch heads, and the aggregate summary.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Union
from enum import Enum
import hashlib
import json
import secrets

from worklog.config import config


class OperationType(str, Enum):
    """Kinds of operation an entry can record."""

    FILE_CREATE = "file-create"
    FILE_MODIFY = "file-modify"
    FILE_DELETE = "file-delete"
    FILE_RENAME = "file-rename"
    SCENE_CREATE = "scene-create"
    SCENE_MODIFY = "scene-modify"
    SCRIPT_CREATE = "script-create"
    SCRIPT_MODIFY = "script-modify"
    EXPORT_START = "export-start"
    EXPORT_SUCCESS = "export-success"
    EXPORT_FAIL = "export-fail"
    PLUGIN_INSTALL = "plugin-install"
    PLUGIN_REMOVE = "plugin-remove"
    CONFIG_CHANGE = "config-change"
    AI_GENERATION = "ai-generation"
    BUILD_START = "build-start"
    BUILD_SUCCESS = "build-success"
    BUILD_FAIL = "build-fail"
    CHECKPOINT = "checkpoint"


class ChangeType(str, Enum):
    """Type of a path-level change."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass
class FileChange:
    """
    A single path-level change attached to an entry.

    Attributes:
        path: Project-relative path after the change
        type: Kind of change
        old_path: Previous path, required iff type is RENAMED
        content_hash: Optional short hash of the new content
        lines_added: Approximate number of lines added
        lines_removed: Approximate number of lines removed
    """

    path: str
    type: ChangeType
    old_path: Optional[str] = None
    content_hash: Optional[str] = None
    lines_added: Optional[int] = None
    lines_removed: Optional[int] = None

    def __post_init__(self) -> None:
        self.type = ChangeType(self.type)
        if self.type == ChangeType.RENAMED and not self.old_path:
            raise ValueError(f"Renamed change for '{self.path}' requires old_path")

    def validate(self) -> None:
        """
        Check a change about to be recorded.

        Stricter than construction: stored logs may carry old_path on
        any change type and must still load.
        """
        if self.type != ChangeType.RENAMED and self.old_path is not None:
            raise ValueError(
                f"old_path is only valid for renamed changes (got {self.type.value})"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert change to dictionary for serialization."""
        data: Dict[str, Any] = {"path": self.path, "type": self.type.value}
        if self.old_path is not None:
            data["oldPath"] = self.old_path
        if self.content_hash is not None:
            data["contentHash"] = self.content_hash
        if self.lines_added is not None:
            data["linesAdded"] = self.lines_added
        if self.lines_removed is not None:
            data["linesRemoved"] = self.lines_removed
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileChange":
        """Create change from dictionary."""
        return cls(
            path=data["path"],
            type=ChangeType(data["type"]),
            old_path=data.get("oldPath"),
            content_hash=data.get("contentHash"),
            lines_added=data.get("linesAdded"),
            lines_removed=data.get("linesRemoved"),
        )


@dataclass
class WorkLogEntry:
    """
    One recorded change event.

    Entries are immutable once written, except for their tags. The parent_id
    chain links each entry to the head of its branch at creation time.
    """

    id: str
    parent_id: Optional[str]
    project_id: str
    timestamp: int
    operation: OperationType
    message: str
    author: str
    changes: List[FileChange] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None

    def __post_init__(self) -> None:
        self.operation = OperationType(self.operation)

    def has_tag(self, tag: str) -> bool:
        """Check whether the entry carries a tag."""
        return bool(self.tags) and tag in self.tags

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary for serialization."""
        data: Dict[str, Any] = {
            "id": self.id,
            "parentId": self.parent_id,
            "projectId": self.project_id,
            "timestamp": self.timestamp,
            "operation": self.operation.value,
            "message": self.message,
            "author": self.author,
            "changes": [change.to_dict() for change in self.changes],
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        if self.tags is not None:
            data["tags"] = self.tags
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkLogEntry":
        """Create entry from dictionary."""
        return cls(
            id=data["id"],
            parent_id=data.get("parentId"),
            project_id=data["projectId"],
            timestamp=data["timestamp"],
            operation=OperationType(data["operation"]),
            message=data["message"],
            author=data["author"],
            changes=[FileChange.from_dict(c) for c in data.get("changes", [])],
            metadata=data.get("metadata"),
            tags=data.get("tags"),
        )

    def to_json(self, indent: int = 2) -> str:
        """Convert entry to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> "WorkLogEntry":
        """Create entry from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class WorkLogHead:
    """Mutable pointer from a branch name to its latest entry."""

    project_id: str
    branch: str
    entry_id: Optional[str]
    created_at: int
    updated_at: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert head to dictionary for serialization."""
        return {
            "projectId": self.project_id,
            "branch": self.branch,
            "entryId": self.entry_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkLogHead":
        """Create head from dictionary."""
        return cls(
            project_id=data["projectId"],
            branch=data["branch"],
            entry_id=data.get("entryId"),
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
        )


@dataclass
class WorkLogIndex:
    """Global append-order list of entry IDs plus a branch -> head cache."""

    entries: List[str] = field(default_factory=list)
    branches: Dict[str, Optional[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert index to dictionary for serialization."""
        return {"entries": self.entries, "branches": self.branches}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkLogIndex":
        """Create index from dictionary."""
        return cls(
            entries=list(data.get("entries", [])),
            branches=dict(data.get("branches", {})),
        )


@dataclass
class WorkLogSummary:
    """Aggregate view over a whole work log."""

    project_id: str
    total_entries: int
    branches: List[str]
    current_branch: str
    head_entry_id: Optional[str]
    first_entry: Optional[int]
    last_entry: Optional[int]
    operation_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary."""
        return {
            "projectId": self.project_id,
            "totalEntries": self.total_entries,
            "branches": self.branches,
            "currentBranch": self.current_branch,
            "headEntryId": self.head_entry_id,
            "firstEntry": self.first_entry,
            "lastEntry": self.last_entry,
            "operationCounts": self.operation_counts,
        }


def generate_entry_id(
    timestamp: int, message: str, author: str, length: int = 12
) -> str:
    """
    Generate a short unique ID for an entry.

    The hash input includes a random nonce, so identical entries get
    different IDs. This is an identifier, not a content fingerprint.
    """
    nonce = secrets.token_hex(8)
    payload = f"{timestamp}:{message}:{author}:{nonce}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:length]


def compute_content_hash(
    content: Union[str, bytes], length: Optional[int] = None
) -> str:
    """Compute a short SHA-256 hash of file content."""
    if length is None:
        length = config.store.content_hash_length
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()[:length]
