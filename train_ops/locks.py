import threading
from contextlib import contextmanager
from typing import Dict, Hashable


class KeyedLock:
    """
    Mutual exclusion per key. Holders of different keys never block each
    other; a key's lock is discarded once nobody holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._refcounts: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._refcounts[key] = self._refcounts.get(key, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._refcounts[key] -= 1
                if self._refcounts[key] == 0:
                    del self._refcounts[key]
                    del self._locks[key]

    def active_keys(self):
        with self._guard:
            return set(self._locks)
