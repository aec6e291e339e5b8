"""Thread-safe in-memory quote cache."""

from __future__ import annotations

import time
from threading import Lock

from .models import Snapshot


class QuoteCache:
    """Holds the latest complete Snapshot.

    Writer: RefreshScheduler (only). Readers: the query service and anything
    else holding a reference. A replace swaps the whole snapshot reference,
    so readers see either the old snapshot or the new one, never a mix.
    """

    def __init__(self) -> None:
        self._snapshot = Snapshot.empty()
        self._lock = Lock()
        self._version: int = 0  # Monotonically increasing; bumped on every replace

    def read(self) -> Snapshot:
        """Return the current snapshot. Never waits on a fetch."""
        with self._lock:
            return self._snapshot

    def replace(self, snapshot: Snapshot) -> None:
        """Atomically swap in a fully built snapshot."""
        with self._lock:
            self._snapshot = snapshot
            self._version += 1

    def age(self, now: float | None = None) -> float | None:
        """Seconds since the current snapshot was taken, or None if never filled."""
        return self.read().age(now if now is not None else time.time())

    @property
    def last_update(self) -> float | None:
        return self.read().as_of

    @property
    def version(self) -> int:
        """Current version counter."""
        return self._version

    def __len__(self) -> int:
        return len(self.read())
