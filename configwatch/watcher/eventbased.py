import logging
import queue
import threading
from concurrent.futures import Future

from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch
from watchdog.events import FileSystemEventHandler
from watchdog.events import FileSystemEvent  # noqa

from configwatch.errors import BackendAddError
from configwatch.errors import BackendRuntimeError
from configwatch.signal import Broadcaster  # noqa
from configwatch.watcher.classifier import CHANGED
from configwatch.watcher.classifier import DIRECTORY_GONE
from configwatch.watcher.classifier import REMOVED
from configwatch.watcher.classifier import ChangeClassifier
from configwatch.watcher.classifier import WatchedPath
from configwatch.watcher.shared import Backend

from typing import Any, Callable, Dict, List, Optional  # noqa


LOGGER = logging.getLogger(__name__)

ARMING = 'arming'
ACTIVE = 'active'
TERMINATED = 'terminated'

_CLOSED = object()
_STOP = object()


class QueueingEventAdapter(FileSystemEventHandler):
    """Feeds backend events and errors into a watch loop's queue."""
    def __init__(self, events):
        # type: (queue.Queue) -> None
        self._events = events

    def on_any_event(self, event):
        # type: (FileSystemEvent) -> None
        self._events.put(event)

    def error(self, exc):
        # type: (Exception) -> None
        self._events.put(exc)

    def close(self):
        # type: () -> None
        self._events.put(_CLOSED)


class WatchdogBackend(Backend):
    """Uses a single watchdog observer for every armed directory.

    Files sharing a directory share one observer watch; the watch is
    unscheduled when the last handler for the directory is removed.
    """
    def __init__(self, observer_factory=Observer):
        # type: (Callable[[], Any]) -> None
        self._observer = observer_factory()
        self._lock = threading.Lock()
        self._watches = {}  # type: Dict[str, ObservedWatch]
        self._handlers = {}  # type: Dict[str, List[FileSystemEventHandler]]
        self._stopped = False

    def start(self):
        # type: () -> None
        self._observer.start()

    def stop(self, timeout=None):
        # type: (Optional[float]) -> None
        with self._lock:
            self._stopped = True
            handlers = [h for hs in self._handlers.values() for h in hs]
            self._watches.clear()
            self._handlers.clear()
        died = not self._observer.is_alive()
        self._observer.stop()
        self._observer.join(timeout)
        for handler in handlers:
            if died:
                handler.error(OSError('observer thread exited unexpectedly'))
            else:
                handler.close()

    def add_watch(self, directory, handler):
        # type: (str, FileSystemEventHandler) -> None
        with self._lock:
            if self._stopped:
                raise OSError('backend is stopped')
            if directory in self._watches:
                self._observer.add_handler_for_watch(
                    handler, self._watches[directory])
            else:
                try:
                    self._watches[directory] = self._observer.schedule(
                        handler, directory, recursive=False)
                except (OSError, RuntimeError):
                    self._discard_failed_handler(directory, handler)
                    raise
            self._handlers.setdefault(directory, []).append(handler)

    def _discard_failed_handler(self, directory, handler):
        # type: (str, FileSystemEventHandler) -> None
        # The observer registers the handler before starting the emitter,
        # so a failed schedule leaves it attached to a watch with no emitter.
        watch = ObservedWatch(directory, recursive=False)
        try:
            self._observer.remove_handler_for_watch(handler, watch)
        except (KeyError, ValueError):
            pass

    def remove_watch(self, directory, handler):
        # type: (str, FileSystemEventHandler) -> None
        with self._lock:
            handlers = self._handlers.get(directory, [])
            if handler not in handlers:
                return
            handlers.remove(handler)
            watch = self._watches[directory]
            try:
                if handlers:
                    self._observer.remove_handler_for_watch(handler, watch)
                else:
                    del self._handlers[directory]
                    del self._watches[directory]
                    self._observer.unschedule(watch)
            except (KeyError, OSError) as e:
                LOGGER.debug("Error removing watch for %s: %s", directory, e)


class WatchLoop(object):
    """Serves one watched file.

    The loop runs in its own thread. It arms the file's directory on the
    backend, resolves ``armed`` and then classifies every event it receives
    until the file is removed, the backend reports an error or closes, or
    ``stop`` is called.
    """
    def __init__(self, path, backend, broadcaster):
        # type: (str, Backend, Broadcaster) -> None
        self.watched = WatchedPath(path)
        self.armed = Future()  # type: Future
        self.state = ARMING
        self.error = None  # type: Optional[BackendRuntimeError]
        self._backend = backend
        self._broadcaster = broadcaster
        self._classifier = ChangeClassifier(self.watched)
        self._events = queue.Queue()  # type: queue.Queue
        self._adapter = QueueingEventAdapter(self._events)
        self._release_lock = threading.Lock()
        self._registered = False
        self._log = logging.LoggerAdapter(
            LOGGER, {'watch_file': self.watched.path})
        self._thread = threading.Thread(
            target=self._run, name='configwatch:%s' % self.watched.path)
        self._thread.daemon = True

    @property
    def path(self):
        # type: () -> str
        return self.watched.path

    @property
    def terminated(self):
        # type: () -> bool
        return self.state == TERMINATED

    def start(self):
        # type: () -> Future
        self._thread.start()
        return self.armed

    def stop(self):
        # type: () -> None
        """Release the backend watch and end the loop."""
        self._release()
        self._events.put(_STOP)

    def join(self, timeout=None):
        # type: (Optional[float]) -> None
        if self._thread.ident is not None:
            self._thread.join(timeout)

    def is_alive(self):
        # type: () -> bool
        return self._thread.is_alive()

    def _run(self):
        # type: () -> None
        try:
            self._arm()
        except BackendAddError as e:
            self.state = TERMINATED
            self.armed.set_exception(e)
            return
        self.state = ACTIVE
        self.armed.set_result(self.watched)
        try:
            self._consume()
        finally:
            self.state = TERMINATED
            self._release()
            self._log.debug("Stopped watching %s", self.watched.path)

    def _arm(self):
        # type: () -> None
        self.watched.refresh_target()
        try:
            self._backend.add_watch(self.watched.directory, self._adapter)
        except (OSError, RuntimeError) as e:
            self._log.error("Error watching file path %s: %s",
                            self.watched.path, e)
            raise BackendAddError(self.watched.path, str(e))
        with self._release_lock:
            self._registered = True
        self._log.debug("Watching %s in %s", self.watched.path,
                        self.watched.directory)

    def _release(self):
        # type: () -> None
        with self._release_lock:
            if not self._registered:
                return
            self._registered = False
        self._backend.remove_watch(self.watched.directory, self._adapter)

    def _consume(self):
        # type: () -> None
        while True:
            item = self._events.get()
            if item is _STOP:
                return
            if item is _CLOSED:
                self._log.debug("Event stream closed for %s",
                                self.watched.path)
                return
            if isinstance(item, Exception):
                self._fail(item)
                return
            outcome = self._classifier.classify(item)
            if outcome == CHANGED:
                self._log.info("Detected file change for %s (%s, target %s)",
                               self.watched.path, item.event_type,
                               self.watched.target)
                self._broadcaster.broadcast()
            elif outcome == REMOVED:
                self._log.debug("%s was removed", self.watched.path)
                return
            elif outcome == DIRECTORY_GONE:
                self._fail(BackendRuntimeError(
                    'directory %s was removed' % self.watched.directory))
                return

    def _fail(self, exc):
        # type: (Exception) -> None
        if not isinstance(exc, BackendRuntimeError):
            exc = BackendRuntimeError(str(exc))
        self.error = exc
        self._log.error("Watcher error for %s: %s", self.watched.path, exc)
