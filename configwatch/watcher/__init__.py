"""This module watches individual files and broadcasts when they change.

Filesystem backends report events per directory, not per file, and a file
mounted from a Kubernetes ConfigMap or Secret never sees a write event of
its own: the orchestrator swaps a symlink somewhere above it instead. To
catch both cases a ``Watcher`` arms the directory containing each file on a
watchdog observer, runs one watch loop per file and re-resolves the file's
symlink target on every event that loop receives. Anything that counts as a
change is broadcast to every party currently blocked in ``Watcher.wait``.

Removing the watched file ends its watch loop. The path stays registered
but inactive until ``add_path`` is called for it again.
"""
from configwatch.watcher.filewatcher import Watcher

__all__ = ['Watcher']
