"""Per-player locks serializing concurrent rating updates."""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Hashable, Iterable, Iterator


class PlayerLock:
    """A player's lock; weak-referenceable so idle locks can be dropped."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        return self._lock.acquire(blocking, timeout)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> bool:
        return self.acquire()

    def __exit__(self, *exc_info) -> None:
        self.release()


class PlayerLockRegistry:
    """Hands out one lock per player id.

    ``hold`` acquires the locks of several players in a fixed global order,
    so two tournaments finalizing concurrently that share a player serialize
    without deadlocking. Locks are kept only while referenced, so a
    long-lived registry does not grow with every player ever seen.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._registry_lock = threading.Lock()

    def lock_for(self, player_id: Hashable) -> PlayerLock:
        with self._registry_lock:
            lock = self._locks.get(player_id)
            if lock is None:
                lock = self._locks[player_id] = PlayerLock()
            return lock

    @staticmethod
    def acquisition_order(player_ids: Iterable[Hashable]) -> list[Hashable]:
        """Unique ids in the order their locks are taken."""
        return sorted(
            set(player_ids), key=lambda pid: (type(pid).__name__, pid)
        )

    @contextmanager
    def hold(self, player_ids: Iterable[Hashable]) -> Iterator[None]:
        """Hold the locks of every given player for the ``with`` block."""
        locks = [
            self.lock_for(pid) for pid in self.acquisition_order(player_ids)
        ]
        acquired: list[PlayerLock] = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
