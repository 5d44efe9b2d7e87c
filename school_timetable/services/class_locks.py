"""
Per-class write locks.

Two admins generating (or resolving) the same class at once would interleave
their draft writes; routes hold the class's lock for the whole
read-schedule-persist cycle.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

_registry_lock = threading.Lock()
_class_locks: Dict[str, threading.Lock] = {}


def get_class_lock(class_id: str) -> threading.Lock:
    with _registry_lock:
        lock = _class_locks.get(class_id)
        if lock is None:
            lock = _class_locks[class_id] = threading.Lock()
        return lock


@contextmanager
def class_write_lock(class_id: str) -> Iterator[None]:
    lock = get_class_lock(class_id)
    with lock:
        yield
