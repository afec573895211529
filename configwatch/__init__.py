from configwatch.errors import BackendAddError
from configwatch.errors import BackendInitError
from configwatch.errors import BackendRuntimeError
from configwatch.errors import WatcherError
from configwatch.signal import Broadcaster
from configwatch.signal import Waiter
from configwatch.watcher import Watcher

__version__ = '0.1.0'

__all__ = [
    'BackendAddError',
    'BackendInitError',
    'BackendRuntimeError',
    'Broadcaster',
    'Waiter',
    'Watcher',
    'WatcherError',
]
