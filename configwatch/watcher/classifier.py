"""Decide which raw directory events matter for a watched file.

Backends report events for the whole directory a file lives in. Most of
them are noise for the file we care about, but two kinds are not: writes
to (or creation of) the file itself, and a change of the file's resolved
target. The latter is how Kubernetes updates mounted ConfigMaps: the file
is a symlink into a ``..data`` directory symlink and the update swaps
``..data`` in a single rename. The watched filename never receives an event
of its own in that case, so every event re-resolves the target.
"""
import os

from watchdog.events import FileSystemEvent  # noqa
from watchdog.events import EVENT_TYPE_CREATED
from watchdog.events import EVENT_TYPE_DELETED
from watchdog.events import EVENT_TYPE_MODIFIED
from watchdog.events import EVENT_TYPE_MOVED

from typing import Optional, Union  # noqa


CHANGED = 'changed'
REMOVED = 'removed'
IGNORED = 'ignored'
DIRECTORY_GONE = 'directory-gone'

_WRITE_OR_CREATE = (EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED)


def clean_path(path):
    # type: (Union[str, bytes]) -> str
    return os.path.normpath(os.path.abspath(os.fsdecode(path)))


def resolve_target(path):
    # type: (str) -> str
    """Return the real path of ``path``, or ``''`` if it can't be resolved."""
    try:
        return os.path.realpath(path, strict=True)
    except OSError:
        return ''


class WatchedPath(object):
    def __init__(self, path):
        # type: (str) -> None
        self.path = clean_path(path)
        self.directory = os.path.dirname(self.path)
        self.target = ''

    def refresh_target(self):
        # type: () -> str
        self.target = resolve_target(self.path)
        return self.target

    def __repr__(self):
        # type: () -> str
        return 'WatchedPath(path=%r, directory=%r, target=%r)' % (
            self.path, self.directory, self.target)


class ChangeClassifier(object):
    """Classifies backend events for a single ``WatchedPath``.

    ``classify`` returns ``CHANGED`` when the file was written, created or
    its symlink target moved, ``REMOVED`` when the file itself was deleted,
    ``DIRECTORY_GONE`` when the armed directory disappeared and ``IGNORED``
    for everything else. The recorded target is updated on ``CHANGED``.
    """
    def __init__(self, watched):
        # type: (WatchedPath) -> None
        self.watched = watched

    def classify(self, event):
        # type: (FileSystemEvent) -> str
        src_path = clean_path(event.src_path)
        if event.event_type == EVENT_TYPE_DELETED and \
                src_path == self.watched.directory:
            return DIRECTORY_GONE
        names_file = src_path == self.watched.path
        current = resolve_target(self.watched.path)
        if (names_file and event.event_type in _WRITE_OR_CREATE) or \
                self._moved_onto_file(event) or \
                (current and current != self.watched.target):
            self.watched.target = current
            return CHANGED
        if names_file and event.event_type == EVENT_TYPE_DELETED:
            return REMOVED
        return IGNORED

    def _moved_onto_file(self, event):
        # type: (FileSystemEvent) -> bool
        # A rename over the file is a create from the file's point of view.
        if event.event_type != EVENT_TYPE_MOVED:
            return False
        dest_path = getattr(event, 'dest_path', None)
        if not dest_path:
            return False
        return clean_path(dest_path) == self.watched.path
