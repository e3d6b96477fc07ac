"""Indexes that turn an operation log into the view a store serves."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any, Protocol

from .logtypes import Entry
from .operation import OperationError, parse_operation


class OpLog(Protocol):
    """Anything that yields its entries in log order."""

    def values(self) -> list[Entry]: ...


class BaseIndex:
    """Index holding every entry of the log, in order."""

    def __init__(self, public_key: bytes = b"") -> None:
        self.id = public_key
        self._lock = threading.Lock()
        self._index: list[Entry] = []

    def get(self, key: str) -> list[Entry]:
        """Return all entries of the log; the key is ignored."""
        with self._lock:
            return list(self._index)

    def update_index(self, oplog: OpLog, entries: Iterable[Entry] = ()) -> None:
        """Replace the indexed entries with the current log contents."""
        with self._lock:
            self._index = oplog.values()


class NoopIndex:
    """Index that keeps nothing."""

    def get(self, key: str) -> None:
        """Always return None."""
        return None

    def update_index(self, oplog: OpLog, entries: Iterable[Entry] = ()) -> None:
        """Do nothing."""


class KeyValueIndex:
    """Latest value of each key, as decided by the newest PUT or DEL."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._index: dict[str, bytes | None] = {}

    def get(self, key: str) -> bytes | None:
        """Return the value stored under a key, or None."""
        with self._lock:
            return self._index.get(key)

    def all(self) -> dict[str, bytes | None]:
        """Return a copy of every key and value."""
        with self._lock:
            return dict(self._index)

    def update_index(self, oplog: OpLog, entries: Iterable[Entry] = ()) -> None:
        """Replay the log newest first, keeping the latest operation per key."""
        handled: set[str] = set()
        with self._lock:
            for entry in reversed(oplog.values()):
                try:
                    item = parse_operation(entry)
                except OperationError as exc:
                    raise OperationError(f"unable to parse log kv operation: {exc}") from exc

                if item.key is None or item.key in handled:
                    continue
                handled.add(item.key)

                if item.op == "PUT":
                    self._index[item.key] = item.value
                elif item.op == "DEL":
                    self._index.pop(item.key, None)


class DocumentIndex:
    """Serialized documents keyed by their index key."""

    def __init__(self, options: Any = None) -> None:
        self.options = options
        self._lock = threading.Lock()
        self._index: dict[str, bytes | None] = {}

    def keys(self) -> list[str]:
        """Return every indexed key."""
        with self._lock:
            return list(self._index)

    def get(self, key: str) -> bytes | None:
        """Return the serialized document under a key, or None."""
        with self._lock:
            return self._index.get(key)

    def update_index(self, oplog: OpLog, entries: Iterable[Entry] = ()) -> None:
        """Replay the log newest first, applying PUT, DEL and PUTALL operations."""
        handled: set[str] = set()
        with self._lock:
            for entry in reversed(oplog.values()):
                try:
                    item = parse_operation(entry)
                except OperationError as exc:
                    raise OperationError(
                        f"unable to parse log documentstore operation: {exc}"
                    ) from exc

                if item.op == "PUTALL":
                    for doc in item.docs:
                        if doc.key in handled:
                            continue
                        # The batch marks its own key, not the documents' keys.
                        if item.key is not None:
                            handled.add(item.key)
                        self._index[doc.key] = doc.value
                    continue

                if not item.key or item.key in handled:
                    continue
                handled.add(item.key)

                if item.op == "PUT":
                    self._index[item.key] = item.value
                elif item.op == "DEL":
                    self._index.pop(item.key, None)


class EventIndex:
    """Index over an event log: the whole log, in order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._log: OpLog | None = None

    def get(self, key: str) -> list[Entry] | None:
        """Return the log's entries, or None before the first update."""
        with self._lock:
            if self._log is None:
                return None
            return self._log.values()

    def update_index(self, oplog: OpLog, entries: Iterable[Entry] = ()) -> None:
        """Point the index at the given log."""
        with self._lock:
            self._log = oplog