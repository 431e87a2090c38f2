# File: podscribe/core/tasks/registry.py
import logging
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from podscribe.core.common.errors import TaskBusyError
from podscribe.core.common.fs import remove_path
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class TaskEntry:
    """
    Exists only while a transcription is in flight for content_id.
    Removal from the registry is the sole proof the slot is free.
    """
    content_id: str
    token: CancellationToken = field(default_factory=CancellationToken)
    temp_directory: Optional[Path] = None
    cleanup_paths: List[Path] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.token.is_cancelled()


class TaskRegistry:
    """
    Single-flight table keyed by content id.
    One lock guards the map; instantiate a fresh registry per orchestrator (or per test).
    """

    def __init__(self):
        self._lock = Lock()
        self._entries: Dict[str, TaskEntry] = {}

    def acquire(self, content_id: str) -> TaskEntry:
        """Claims the slot for content_id. Fails without touching an existing entry."""
        with self._lock:
            if content_id in self._entries:
                raise TaskBusyError(f"Content {content_id} is already being transcribed.")
            entry = TaskEntry(content_id=content_id)
            self._entries[content_id] = entry
            return entry

    def get(self, content_id: str) -> Optional[TaskEntry]:
        with self._lock:
            return self._entries.get(content_id)

    def active_ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def attach_temp_directory(self, entry: TaskEntry, temp_directory: Path) -> bool:
        """
        Records the pipeline temp dir so cancel() can remove it.
        Returns False if the entry was already cancelled/removed; the caller then owns cleanup.
        """
        with self._lock:
            if self._entries.get(entry.content_id) is not entry or entry.cancelled:
                return False
            entry.temp_directory = temp_directory
            return True

    def take_temp_directory(self, entry: TaskEntry) -> Optional[Path]:
        """Pops the temp dir so exactly one caller ends up deleting it."""
        with self._lock:
            path, entry.temp_directory = entry.temp_directory, None
            return path

    def attach_cleanup_paths(self, entry: TaskEntry, paths: List[Path]) -> bool:
        with self._lock:
            if self._entries.get(entry.content_id) is not entry or entry.cancelled:
                return False
            entry.cleanup_paths = list(paths)
            return True

    def take_cleanup_paths(self, entry: TaskEntry) -> List[Path]:
        with self._lock:
            paths, entry.cleanup_paths = entry.cleanup_paths, []
            return paths

    def cancel(self, content_id: str) -> bool:
        """
        Flags the task, removes its temp directory (best effort), then frees the slot.
        Returns False when nothing was running for content_id.
        """
        with self._lock:
            entry = self._entries.get(content_id)
            if entry is None or entry.cancelled:
                return False
            entry.token.cancel()
            doomed = [p for p in [entry.temp_directory, *entry.cleanup_paths] if p]
            entry.temp_directory = None
            entry.cleanup_paths = []

        # the entry stays registered (and flagged) until its files are gone
        for path in doomed:
            remove_path(path)

        with self._lock:
            if self._entries.get(content_id) is entry:
                del self._entries[content_id]
        logger.info(f"Cancelled transcription for {content_id} (removed {len(doomed)} temp path(s))")
        return True

    def release(self, entry: TaskEntry) -> None:
        """Frees the slot, but only if it is still held by this entry."""
        with self._lock:
            if self._entries.get(entry.content_id) is entry:
                del self._entries[entry.content_id]

