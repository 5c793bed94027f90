"""
Core - Guarded Locks

Thread locks for the shared registry, cache, settings and dedup set.
Critical sections are pure in-memory operations; no I/O happens while
a lock is held.
"""
import threading
from contextlib import contextmanager

from .errors import LockError

# Upper bound on waiting for an in-memory critical section.
DEFAULT_LOCK_TIMEOUT = 5.0


class GuardedLock:
    """
    Named lock whose acquisition failure raises LockError.

    Usage:
        lock = GuardedLock("registry")
        with lock.hold():
            ...
    """

    def __init__(self, name: str, timeout: float = DEFAULT_LOCK_TIMEOUT):
        self.name = name
        self.timeout = timeout
        self._lock = threading.Lock()

    @contextmanager
    def hold(self):
        if not self._lock.acquire(timeout=self.timeout):
            raise LockError(f"Failed to lock {self.name}")
        try:
            yield
        finally:
            self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()
