import threading

from configwatch.watcher.registry import PathRegistry


class StubLoop(object):
    def __init__(self, terminated=False):
        self.terminated = terminated


def test_add_returns_new_loop():
    registry = PathRegistry()
    loop = StubLoop()
    assert registry.add('/etc/app/config.yaml', loop) is loop
    assert '/etc/app/config.yaml' in registry
    assert len(registry) == 1


def test_add_is_idempotent_for_live_loop():
    registry = PathRegistry()
    first = StubLoop()
    registry.add('/etc/app/config.yaml', first)
    assert registry.add('/etc/app/config.yaml', StubLoop()) is first
    assert len(registry) == 1


def test_add_replaces_terminated_loop():
    registry = PathRegistry()
    registry.add('/etc/app/config.yaml', StubLoop(terminated=True))
    replacement = StubLoop()
    assert registry.add('/etc/app/config.yaml', replacement) is replacement
    assert registry.get('/etc/app/config.yaml') is replacement
    assert len(registry) == 1


def test_remove_returns_dropped_loop():
    registry = PathRegistry()
    loop = StubLoop()
    registry.add('/a', loop)
    assert registry.remove('/a') is loop
    assert registry.remove('/a') is None
    assert '/a' not in registry


def test_remove_only_drops_matching_loop():
    registry = PathRegistry()
    loop = StubLoop()
    registry.add('/a', loop)
    assert registry.remove('/a', StubLoop()) is None
    assert registry.get('/a') is loop
    assert registry.remove('/a', loop) is loop


def test_clear_empties_registry():
    registry = PathRegistry()
    loops = [StubLoop(), StubLoop()]
    registry.add('/a', loops[0])
    registry.add('/b', loops[1])
    removed = registry.clear()
    assert len(removed) == 2
    assert set(map(id, removed)) == set(map(id, loops))
    assert len(registry) == 0
    assert registry.paths() == []


def test_clear_on_empty_registry():
    registry = PathRegistry()
    assert registry.clear() == []


def test_paths_are_sorted():
    registry = PathRegistry()
    for path in ('/c', '/a', '/b'):
        registry.add(path, StubLoop())
    assert registry.paths() == ['/a', '/b', '/c']


def test_concurrent_adds_keep_one_entry_per_path():
    registry = PathRegistry()
    winners = []
    start = threading.Event()

    def add():
        start.wait()
        winners.append(registry.add('/same', StubLoop()))

    threads = [threading.Thread(target=add) for _ in range(8)]
    for t in threads:
        t.start()
    start.set()
    for t in threads:
        t.join()

    assert len(registry) == 1
    assert all(w is winners[0] for w in winners)
