"""
Filtering for work log queries.

A LogQuery narrows an already-ordered list of entries. All filters combine
with logical AND; offset and limit are applied last.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence, Union

from .entry import OperationType, WorkLogEntry

OperationFilter = Union[OperationType, str, Iterable[Union[OperationType, str]]]


@dataclass
class LogQuery:
    """
    Filters for get_log.

    Attributes:
        operation: A single operation kind or a collection of them
        author: Exact author match
        since: Inclusive lower timestamp bound (epoch ms)
        until: Inclusive upper timestamp bound (epoch ms)
        tags: Match entries carrying at least one of these tags
        search: Case-insensitive substring of the message or any change path
        limit: Maximum number of entries returned
        offset: Number of matching entries skipped
    """

    operation: Optional[OperationFilter] = None
    author: Optional[str] = None
    since: Optional[int] = None
    until: Optional[int] = None
    tags: Optional[Sequence[str]] = None
    search: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")
        if self.offset is not None and self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")

    def operations(self) -> Optional[FrozenSet[OperationType]]:
        """Normalize the operation filter to a set of kinds."""
        if self.operation is None:
            return None
        if isinstance(self.operation, (OperationType, str)):
            return frozenset([OperationType(self.operation)])
        return frozenset(OperationType(op) for op in self.operation)

    def matches(self, entry: WorkLogEntry) -> bool:
        """Check one entry against every filter except offset/limit."""
        ops = self.operations()
        if ops is not None and entry.operation not in ops:
            return False

        if self.author is not None and entry.author != self.author:
            return False

        if self.since is not None and entry.timestamp < self.since:
            return False

        if self.until is not None and entry.timestamp > self.until:
            return False

        if self.tags:
            if not entry.tags or not any(t in self.tags for t in entry.tags):
                return False

        if self.search:
            needle = self.search.lower()
            in_message = needle in entry.message.lower()
            in_paths = any(needle in c.path.lower() for c in entry.changes)
            if not (in_message or in_paths):
                return False

        return True

    def apply(self, entries: Sequence[WorkLogEntry]) -> List[WorkLogEntry]:
        """
        Filter and paginate entries, preserving their order.

        Args:
            entries: Entries in the order they should be returned

        Returns:
            Matching entries after offset and limit
        """
        filtered = [e for e in entries if self.matches(e)]

        offset = self.offset or 0
        if self.limit is None:
            return filtered[offset:]
        return filtered[offset : offset + self.limit]
