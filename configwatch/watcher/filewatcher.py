import logging
from concurrent import futures

from configwatch import config
from configwatch.errors import BackendAddError
from configwatch.errors import BackendInitError
from configwatch.signal import Broadcaster
from configwatch.signal import Waiter  # noqa
from configwatch.watcher.classifier import WatchedPath  # noqa
from configwatch.watcher.classifier import clean_path
from configwatch.watcher.eventbased import WatchdogBackend
from configwatch.watcher.eventbased import WatchLoop
from configwatch.watcher.registry import PathRegistry
from configwatch.watcher.shared import Backend  # noqa

from typing import Any, ContextManager, Iterable, List, Optional  # noqa


LOGGER = logging.getLogger(__name__)


class Watcher(object):
    """Watches files for changes.

    Every path added with ``add_path`` is served by its own watch loop.
    All loops share one broadcaster, so ``wait`` returns when any of the
    watched files changed; callers re-read whatever they depend on.

    A path whose file was removed stops being monitored but stays listed in
    ``paths``. Call ``add_path`` again once the file is back to resume.
    """
    def __init__(self, backend=None, arm_timeout=None, join_timeout=None):
        # type: (Optional[Backend], Optional[float], Optional[float]) -> None
        if arm_timeout is None:
            arm_timeout = config.arm_timeout()
        if join_timeout is None:
            join_timeout = config.join_timeout()
        self._arm_timeout = arm_timeout
        self._join_timeout = join_timeout
        try:
            if backend is None:
                backend = WatchdogBackend()
            backend.start()
        except (OSError, RuntimeError) as e:
            LOGGER.error("Unable to start file watcher backend: %s", e)
            raise BackendInitError(str(e)) from e
        self._backend = backend
        self._registry = PathRegistry()
        self.broadcaster = Broadcaster()
        self._closed = False

    def __enter__(self):
        # type: () -> Watcher
        return self

    def __exit__(self, *exc_info):
        # type: (Any) -> None
        self.close()

    @property
    def paths(self):
        # type: () -> List[str]
        return self._registry.paths()

    def add_path(self, path):
        # type: (str) -> None
        """Start watching ``path``.

        Blocks until the directory containing ``path`` is registered with
        the backend. Adding a path that is already watched does nothing.
        Raises ``BackendAddError`` if the directory could not be watched.
        """
        cleaned = clean_path(path)
        loop = WatchLoop(cleaned, self._backend, self.broadcaster)
        current = self._registry.add(cleaned, loop)
        if current is not loop:
            self._wait_armed(current)
            return
        loop.start()
        try:
            self._wait_armed(loop)
        except BackendAddError:
            self._registry.remove(cleaned, loop)
            raise

    def add_paths(self, paths):
        # type: (Iterable[str]) -> None
        for path in paths:
            self.add_path(path)

    def _wait_armed(self, loop):
        # type: (WatchLoop) -> None
        try:
            loop.armed.result(timeout=self._arm_timeout)
        except futures.TimeoutError:
            loop.stop()
            LOGGER.error("Timed out arming watch for %s", loop.path)
            raise BackendAddError(
                loop.path, 'timed out after %ss' % self._arm_timeout)

    def remove_path(self, path):
        # type: (str) -> bool
        """Stop watching ``path``; returns whether it was registered."""
        loop = self._registry.remove(clean_path(path))
        if loop is None:
            return False
        self._stop_loops([loop])
        return True

    def clear(self):
        # type: () -> None
        """Remove all watches."""
        self._stop_loops(self._registry.clear())

    def _stop_loops(self, loops):
        # type: (List[WatchLoop]) -> None
        for loop in loops:
            loop.stop()
        for loop in loops:
            loop.join(self._join_timeout)
            if loop.is_alive():
                LOGGER.warning("Watch loop for %s did not stop within %ss",
                               loop.path, self._join_timeout)

    def close(self):
        # type: () -> None
        if self._closed:
            return
        self._closed = True
        self.clear()
        self._backend.stop(self._join_timeout)

    def is_active(self, path):
        # type: (str) -> bool
        loop = self._registry.get(clean_path(path))
        return loop is not None and not loop.terminated

    def get_watched(self, path):
        # type: (str) -> Optional[WatchedPath]
        loop = self._registry.get(clean_path(path))
        if loop is None:
            return None
        return loop.watched

    def bind(self):
        # type: () -> Waiter
        return self.broadcaster.bind()

    def unbind(self, waiter):
        # type: (Waiter) -> None
        self.broadcaster.unbind(waiter)

    def broadcast(self):
        # type: () -> int
        return self.broadcaster.broadcast()

    def subscribe(self):
        # type: () -> ContextManager[Waiter]
        return self.broadcaster.subscribe()

    def wait(self, timeout=None):
        # type: (Optional[float]) -> bool
        """Block until any watched file changes or ``timeout`` expires."""
        return self.broadcaster.wait(timeout)
