"""Per-object reconcile locks."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class ObjectLocks:
    """One lock per (namespace, name) so passes for an object never overlap.

    Entries are reference counted and dropped once no pass holds or waits on
    them, so the map only ever contains objects currently being reconciled.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._users: dict[tuple[str, str], int] = {}

    @contextmanager
    def hold(self, namespace: str, name: str) -> Iterator[None]:
        """Block until no other pass runs for the object, then hold its lock."""
        key = (namespace, name)
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
