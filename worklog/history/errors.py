"""
Exceptions raised by the work log.

Hard failures raise one of these; soft failures return False, None or [].
"""


class WorkLogError(Exception):
    """Base exception for work log errors."""

    pass


class WorkLogNotInitializedError(WorkLogError):
    """Raised when a mutating operation targets a project without a log."""

    pass


class BranchNotFoundError(WorkLogError):
    """Raised when recording to a branch that does not exist."""

    pass


class BranchExistsError(WorkLogError):
    """Raised when creating a branch whose name is taken."""

    pass


class SourceBranchMissingError(WorkLogError):
    """Raised when forking from a branch that does not exist."""

    pass


class DefaultBranchProtectedError(WorkLogError):
    """Raised when attempting to delete the default branch."""

    pass


class EntryNotFoundError(WorkLogError):
    """Raised when a diff endpoint is not in the resolved branch history."""

    pass


class CorruptedFileError(WorkLogError):
    """Raised when a persisted file is corrupted or invalid."""

    pass
