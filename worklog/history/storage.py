"""
Storage backend for the work log.

Handles persistence of entries, branch heads and the index to disk.
"""

import json
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Union

from worklog.config import StoreConfig, config
from worklog.logging import get_worklog_logger
from .entry import WorkLogEntry, WorkLogHead, WorkLogIndex
from .errors import CorruptedFileError

log = get_worklog_logger("storage")

ENTRIES_DIR = "entries"
HEADS_FILE = "heads.json"
INDEX_FILE = "index.json"

_ENTRY_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class WorkLogStorage:
    """
    File-based storage for one project's work log.

    Layout inside the project directory:
    - .worklog/
      - heads.json    {branch: {projectId, branch, entryId, createdAt, updatedAt}}
      - index.json    {entries: [id, ...], branches: {branch: id | null}}
      - entries/
        - {entry_id}.json

    Every file write goes through a temp file and os.replace, so a reader
    never sees a partially written file. There is no locking: a single
    writer per project directory is assumed.
    """

    def __init__(
        self,
        project_path: Union[str, Path],
        store_config: Optional[StoreConfig] = None,
    ):
        """
        Initialize storage paths. Nothing is created on disk.

        Args:
            project_path: Project directory that holds (or will hold) the log
            store_config: Layout settings (default: global config)
        """
        self.store_config = store_config or config.store
        self.project_path = Path(project_path).resolve()
        self.base_dir = self.project_path / self.store_config.dir_name
        self.entries_dir = self.base_dir / ENTRIES_DIR
        self.heads_file = self.base_dir / HEADS_FILE
        self.index_file = self.base_dir / INDEX_FILE

    def exists(self) -> bool:
        """Check whether the log directory exists."""
        return self.base_dir.exists()

    def create(self) -> None:
        """Create the log directory structure."""
        self.entries_dir.mkdir(parents=True, exist_ok=True)

    def destroy(self) -> bool:
        """
        Remove the whole log directory.

        Returns:
            True if removed, False if there was nothing to remove
        """
        if not self.base_dir.exists():
            return False
        shutil.rmtree(self.base_dir)
        return True

    # Entries

    def save_entry(self, entry: WorkLogEntry) -> None:
        """
        Save an entry, replacing any previous version of the same ID.

        Args:
            entry: Entry to save
        """
        self.entries_dir.mkdir(parents=True, exist_ok=True)
        entry_file = self._entry_path(entry.id)
        with self._atomic_write(entry_file) as f:
            f.write(entry.to_json(indent=self.store_config.json_indent))
        log.debug("Saved entry", entry_id=entry.id)

    def load_entry(self, entry_id: str) -> Optional[WorkLogEntry]:
        """
        Load an entry from storage.

        Args:
            entry_id: ID of entry to load

        Returns:
            Entry if found, None otherwise
        """
        if not entry_id or not _ENTRY_ID_PATTERN.match(entry_id):
            return None

        entry_file = self._entry_path(entry_id)
        data = self._read_json(entry_file)
        if data is None:
            return None

        try:
            return WorkLogEntry.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptedFileError(f"Invalid entry file {entry_file}: {e}") from e

    def list_entry_ids(self) -> List[str]:
        """List the IDs of all entry files on disk."""
        if not self.entries_dir.exists():
            return []
        return sorted(f.stem for f in self.entries_dir.glob("*.json"))

    # Heads

    def load_heads(self) -> Dict[str, WorkLogHead]:
        """
        Load the branch head table.

        Returns:
            Mapping of branch name to head, in file order (empty if missing)
        """
        data = self._read_json(self.heads_file)
        if data is None:
            return {}

        try:
            return {name: WorkLogHead.from_dict(head) for name, head in data.items()}
        except (AttributeError, KeyError, TypeError) as e:
            raise CorruptedFileError(
                f"Invalid heads file {self.heads_file}: {e}"
            ) from e

    def save_heads(self, heads: Dict[str, WorkLogHead]) -> None:
        """Replace the branch head table."""
        self._write_json(
            self.heads_file, {name: head.to_dict() for name, head in heads.items()}
        )

    # Index

    def load_index(self) -> WorkLogIndex:
        """
        Load the index.

        Returns:
            Index, or an empty one with the default branch if the file is missing
        """
        data = self._read_json(self.index_file)
        if data is None:
            return WorkLogIndex(branches={self.store_config.default_branch: None})

        try:
            return WorkLogIndex.from_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise CorruptedFileError(
                f"Invalid index file {self.index_file}: {e}"
            ) from e

    def save_index(self, index: WorkLogIndex) -> None:
        """Replace the index."""
        self._write_json(self.index_file, index.to_dict())

    # Helpers

    def _entry_path(self, entry_id: str) -> Path:
        return self.entries_dir / f"{entry_id}.json"

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            log.error("Corrupted JSON file", path=str(path), error=str(e))
            raise CorruptedFileError(f"Could not parse {path}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        with self._atomic_write(path) as f:
            json.dump(data, f, indent=self.store_config.json_indent, ensure_ascii=False)

    @contextmanager
    def _atomic_write(self, filepath: Path) -> Iterator[TextIO]:
        """
        Context manager for atomic file write operations (overwrite mode).

        Args:
            filepath: Target file path

        Yields:
            File object for writing
        """
        temp_fd, temp_path = tempfile.mkstemp(
            dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp"
        )

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                yield f

            # Atomic rename
            os.replace(temp_path, filepath)

        except Exception:
            try:
                os.unlink(temp_path)
            except FileNotFoundError:
                pass
            raise
