import threading
import time

import pytest

from configwatch.watcher import Watcher
from configwatch.watcher.shared import Backend


WAIT_TIMEOUT = 5.0
QUIET_PERIOD = 0.5


def wait_until(predicate, timeout=WAIT_TIMEOUT, interval=0.01):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def write_file(filename, contents):
    with open(filename, 'w') as f:
        f.write(contents)


class FakeBackend(Backend):
    """Records registrations and hands events to the registered handlers."""
    def __init__(self, add_error=None, start_error=None, block=None):
        self.add_error = add_error
        self.start_error = start_error
        self.block = block
        self.started = False
        self.stopped = False
        self.handlers = {}
        self.add_calls = []
        self.remove_calls = []
        self._lock = threading.Lock()

    def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    def stop(self, timeout=None):
        self.stopped = True
        with self._lock:
            handlers = [h for hs in self.handlers.values() for h in hs]
            self.handlers.clear()
        for handler in handlers:
            handler.close()

    def add_watch(self, directory, handler):
        if self.block is not None:
            self.block.wait(WAIT_TIMEOUT)
        if self.add_error is not None:
            raise self.add_error
        with self._lock:
            self.add_calls.append(directory)
            self.handlers.setdefault(directory, []).append(handler)

    def remove_watch(self, directory, handler):
        with self._lock:
            self.remove_calls.append(directory)
            handlers = self.handlers.get(directory, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self.handlers.pop(directory, None)

    def emit(self, directory, event):
        with self._lock:
            handlers = list(self.handlers.get(directory, []))
        for handler in handlers:
            handler.dispatch(event)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def watcher():
    w = Watcher(arm_timeout=WAIT_TIMEOUT, join_timeout=WAIT_TIMEOUT)
    yield w
    w.close()
