"""
Per-key mutual exclusion for account state transitions.
"""
import threading
from contextlib import contextmanager
from typing import Dict, List


class KeyedLock:
    """
    Hands out one lock per key so that check-and-set sequences on the same
    account are serialized while different accounts proceed in parallel.

    Entries are reference counted and dropped once no caller holds or waits
    on them, so the registry only ever contains keys currently in use.

    This is an in-process guard; the conditional UPDATE issued by the account
    store keeps transitions linearizable across processes as well.
    """
    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of callers holding or waiting]
        self._locks: Dict[str, List] = {}

    def _acquire_entry(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str):
        lock = self._acquire_entry(key)
        try:
            with lock:
                yield
        finally:
            self._release_entry(key)


# Shared by every engine instance in the process
account_locks = KeyedLock()
