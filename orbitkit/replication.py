"""Replication progress, the fetch queue and replicator events."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass

from .logtypes import Entry, EntryList


class ReplicationInfo:
    """Thread-safe holder of replication progress and maximum."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._progress = 0
        self._maximum = 0

    @property
    def progress(self) -> int:
        with self._lock:
            return self._progress

    @progress.setter
    def progress(self, value: int) -> None:
        with self._lock:
            self._progress = value

    @property
    def maximum(self) -> int:
        with self._lock:
            return self._maximum

    @maximum.setter
    def maximum(self, value: int) -> None:
        with self._lock:
            self._maximum = value

    def reset(self) -> None:
        """Set progress and maximum back to zero."""
        with self._lock:
            self._progress = 0
            self._maximum = 0


@dataclass(frozen=True)
class ProcessItem:
    """A hash waiting to be fetched, with its entry when already known."""

    hash: str
    entry: Entry | None = None


class ProcessQueue:
    """First-in first-out queue of items to fetch. Not thread safe."""

    def __init__(self) -> None:
        self._items: deque[ProcessItem] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def add(self, item: ProcessItem) -> None:
        """Append an item at the end of the queue."""
        self._items.append(item)

    def next(self) -> ProcessItem:
        """Remove and return the oldest item."""
        if not self._items:
            raise IndexError("process queue is empty")
        return self._items.popleft()

    def items(self) -> list[ProcessItem]:
        """Return the queued items, oldest first."""
        return list(self._items)


@dataclass(frozen=True)
class EventLoadAdded:
    """An entry has been added to the replication queue."""

    hash: str
    entry: Entry | None


@dataclass(frozen=True)
class EventLoadProgress:
    """An entry has been fetched during replication."""

    entry: Entry


@dataclass(frozen=True)
class EventLoadEnd:
    """The replication queue drained; carries the fetched logs."""

    logs: tuple[EntryList, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "logs", tuple(self.logs))