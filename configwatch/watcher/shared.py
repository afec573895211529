from typing import Optional  # noqa

from watchdog.events import FileSystemEventHandler  # noqa


class Backend(object):
    """Filesystem events capability used by the watch loops.

    Handlers receive events through ``dispatch`` exactly like watchdog event
    handlers. When the backend stops it calls ``close`` on every handler
    that is still registered, which ends their event stream. If the backend
    finds its event source already dead at that point it calls ``error``
    instead, which the watch loops report as a ``BackendRuntimeError``.
    The only other runtime failure a watch loop sees is its directory being
    deleted.
    """
    def start(self):
        # type: () -> None
        raise NotImplementedError('start')

    def stop(self, timeout=None):
        # type: (Optional[float]) -> None
        raise NotImplementedError('stop')

    def add_watch(self, directory, handler):
        # type: (str, FileSystemEventHandler) -> None
        raise NotImplementedError('add_watch')

    def remove_watch(self, directory, handler):
        # type: (str, FileSystemEventHandler) -> None
        raise NotImplementedError('remove_watch')
