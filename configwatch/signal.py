"""Fan-out change notification.

A ``Broadcaster`` lets any number of threads block until the next change.
Each interested party binds a ``Waiter``; ``broadcast`` wakes every waiter
bound at the moment of the call. Notifications are not queued for waiters
that bind afterwards, and several broadcasts that land before a waiter
wakes up collapse into a single wake up.
"""
import contextlib
import threading

from typing import Iterator, Optional, Set  # noqa


class Waiter(object):
    def __init__(self):
        # type: () -> None
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._pending = False
        self._cancelled = False

    @property
    def cancelled(self):
        # type: () -> bool
        return self._cancelled

    def notify(self):
        # type: () -> None
        with self._lock:
            self._pending = True
            self._event.set()

    def cancel(self):
        # type: () -> None
        """Wake the waiter without a change.

        Every later ``wait`` call returns ``False`` immediately.
        """
        with self._lock:
            self._cancelled = True
            self._event.set()

    def wait(self, timeout=None):
        # type: (Optional[float]) -> bool
        """Block until the next broadcast.

        Returns ``True`` if a broadcast woke the waiter and ``False`` if the
        timeout expired or the waiter was cancelled.
        """
        self._event.wait(timeout)
        with self._lock:
            if self._cancelled:
                return False
            pending = self._pending
            self._pending = False
            self._event.clear()
            return pending


class Broadcaster(object):
    def __init__(self):
        # type: () -> None
        self._lock = threading.Lock()
        self._waiters = set()  # type: Set[Waiter]

    def __len__(self):
        # type: () -> int
        with self._lock:
            return len(self._waiters)

    def bind(self):
        # type: () -> Waiter
        waiter = Waiter()
        with self._lock:
            self._waiters.add(waiter)
        return waiter

    def unbind(self, waiter):
        # type: (Waiter) -> None
        with self._lock:
            self._waiters.discard(waiter)

    def broadcast(self):
        # type: () -> int
        """Wake every bound waiter and return how many were woken."""
        with self._lock:
            waiters = list(self._waiters)
        for waiter in waiters:
            waiter.notify()
        return len(waiters)

    @contextlib.contextmanager
    def subscribe(self):
        # type: () -> Iterator[Waiter]
        waiter = self.bind()
        try:
            yield waiter
        finally:
            self.unbind(waiter)

    def wait(self, timeout=None):
        # type: (Optional[float]) -> bool
        """Block until the next broadcast or until ``timeout`` expires."""
        with self.subscribe() as waiter:
            return waiter.wait(timeout)
