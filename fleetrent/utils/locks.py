import threading
import weakref
from contextlib import contextmanager


class KeyedLocks:
    """
    One re-entrant lock per key (vehicle id, rental id).
    Locks are created lazily and held weakly: a key's lock lives only while
    some thread holds or waits on it, so the map never outgrows the set of
    keys in use.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def get(self, key) -> threading.RLock:
        key = str(key)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, key):
        lock = self.get(key)
        with lock:
            yield
