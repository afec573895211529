class WatcherError(Exception):
    """Base class for all configwatch errors."""


class BackendInitError(WatcherError):
    """The filesystem events backend could not be constructed or started."""


class BackendAddError(WatcherError):
    """A directory could not be registered with the backend."""

    def __init__(self, path, reason):
        # type: (str, str) -> None
        super(BackendAddError, self).__init__(
            'Unable to watch %s: %s' % (path, reason))
        self.path = path
        self.reason = reason


class BackendRuntimeError(WatcherError):
    """The backend reported an error for an armed directory."""
