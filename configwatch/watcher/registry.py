import threading

from typing import Dict, List, Optional, Any  # noqa


class PathRegistry(object):
    """Maps each watched path to the watch loop serving it.

    A path has at most one entry. Entries whose loop has terminated stay
    registered until they are removed, cleared or replaced by a new
    ``add``. Arming happens outside of the registry lock, so any number of
    paths may be arming at once.
    """
    def __init__(self):
        # type: () -> None
        self._lock = threading.Lock()
        self._entries = {}  # type: Dict[str, Any]

    def add(self, path, loop):
        # type: (str, Any) -> Any
        """Register ``loop`` for ``path`` unless a live loop already is.

        Returns the loop that serves ``path`` after the call, which is the
        existing one when ``path`` was already being watched.
        """
        with self._lock:
            existing = self._entries.get(path)
            if existing is not None and not existing.terminated:
                return existing
            self._entries[path] = loop
            return loop

    def get(self, path):
        # type: (str) -> Optional[Any]
        with self._lock:
            return self._entries.get(path)

    def remove(self, path, loop=None):
        # type: (str, Optional[Any]) -> Optional[Any]
        """Drop ``path``, only if it is still served by ``loop`` when given."""
        with self._lock:
            existing = self._entries.get(path)
            if existing is None:
                return None
            if loop is not None and existing is not loop:
                return None
            del self._entries[path]
            return existing

    def clear(self):
        # type: () -> List[Any]
        with self._lock:
            removed = list(self._entries.values())
            self._entries.clear()
        return removed

    def paths(self):
        # type: () -> List[str]
        with self._lock:
            return sorted(self._entries)

    def __contains__(self, path):
        # type: (object) -> bool
        with self._lock:
            return path in self._entries

    def __len__(self):
        # type: () -> int
        with self._lock:
            return len(self._entries)
