"""Replication of remote log heads: fetch entries and follow their links."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, Protocol

from .logtypes import Entry, EntryList
from .replication import (
    EventLoadAdded,
    EventLoadEnd,
    EventLoadProgress,
    ProcessItem,
    ProcessQueue,
)

DEFAULT_CONCURRENCY = 32
BATCH_SIZE = 1
_POLL_INTERVAL = 0.05

_logger = logging.getLogger(__name__)


class _Log(Protocol):
    def get(self, hash: str) -> Entry | None: ...


class _Store(Protocol):
    @property
    def oplog(self) -> _Log: ...


Fetcher = Callable[[str, Callable[[str], bool]], EntryList]
Handler = Callable[[Any], None]


class ReplicatorStopped(RuntimeError):
    """Raised when work is requested from a stopped replicator."""


class _TaskState(Enum):
    ADDED = "added"
    FETCHING = "fetching"
    FETCHED = "fetched"


class _WaitGroup:
    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._count = 0

    def add(self) -> None:
        with self._cond:
            self._count += 1

    def done(self) -> None:
        with self._cond:
            self._count -= 1
            if self._count <= 0:
                self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._count <= 0)


class Replicator:
    """Fetches the entries behind remote heads, a bounded number at a time.

    ``fetch(hash, should_exclude)`` retrieves the log starting at ``hash``
    (one entry per call) and returns it. Events are delivered to the
    handlers registered with :meth:`subscribe`.
    """

    def __init__(
        self,
        store: _Store,
        fetch: Fetcher,
        concurrency: int = 0,
        logger: logging.Logger | None = None,
    ) -> None:
        if concurrency < 0:
            raise ValueError("concurrency must not be negative")
        self._store = store
        self._fetch = fetch
        self._logger = logger or _logger
        self._concurrency = concurrency or DEFAULT_CONCURRENCY
        self._slots = threading.Semaphore(self._concurrency)
        self._lock = threading.RLock()
        self._tasks: dict[str, _TaskState] = {}
        self._queue = ProcessQueue()
        self._in_progress = 0
        self._buffer_lock = threading.Lock()
        self._buffer: list[EntryList] = []
        self._handlers_lock = threading.Lock()
        self._handlers: list[Handler] = []
        self._stopped = threading.Event()

    @property
    def concurrency(self) -> int:
        """The maximum number of fetches running at once."""
        return self._concurrency

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register an event handler; return a function that removes it."""
        with self._handlers_lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._handlers_lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def stop(self) -> None:
        """Cancel pending work and stop emitting events."""
        self._stopped.set()

    def get_queue(self) -> list[str]:
        """Return the hashes that are queued or being fetched."""
        with self._lock:
            return [
                hash
                for hash, state in self._tasks.items()
                if state is not _TaskState.FETCHED
            ]

    def should_exclude(self, hash: str) -> bool:
        """Tell whether a hash is already in the log or already fetched."""
        with self._lock:
            if self._store.oplog.get(hash) is not None:
                return True
            return self._tasks.get(hash) is _TaskState.FETCHED

    def load(self, entries: Iterable[Entry]) -> None:
        """Queue the given heads and wait until they and their ancestors are fetched."""
        wait_group = _WaitGroup()
        with self._lock:
            for entry in entries:
                if self._enqueue(entry.hash, entry):
                    continue
                self._emit(EventLoadAdded(hash=entry.hash, entry=entry))
                wait_group.add()
                self._spawn(wait_group)
        wait_group.wait()

    def _emit(self, event: Any) -> None:
        if self._stopped.is_set():
            self._logger.debug("replicator stopped, dropping event %r", type(event).__name__)
            return
        with self._handlers_lock:
            handlers = list(self._handlers)
        for handler in handlers:
            handler(event)

    def _enqueue(self, hash: str, entry: Entry | None = None) -> bool:
        """Queue a hash unless known; return True when it was already known."""
        in_log = self._store.oplog.get(hash) is not None
        if in_log or hash in self._tasks:
            return True
        self._queue.add(ProcessItem(hash=hash, entry=entry))
        self._tasks[hash] = _TaskState.ADDED
        return False

    def _spawn(self, wait_group: _WaitGroup) -> None:
        thread = threading.Thread(
            target=self._run_one, args=(wait_group,), name="replicator-fetch", daemon=True
        )
        thread.start()

    def _run_one(self, wait_group: _WaitGroup) -> None:
        try:
            try:
                item = self._wait_for_slot()
            except ReplicatorStopped as exc:
                self._logger.warning("unable to process entry: %s", exc)
                return
            try:
                self._process_item(item, wait_group)
            except Exception as exc:  # fetch callbacks may fail in any way
                self._logger.warning("process item ended: %s", exc)
            finally:
                self._entry_done(item)
        finally:
            wait_group.done()

    def _wait_for_slot(self) -> ProcessItem:
        while True:
            if self._stopped.is_set():
                raise ReplicatorStopped("failed to acquire process slot")
            if self._slots.acquire(timeout=_POLL_INTERVAL):
                break
        if self._stopped.is_set():
            self._slots.release()
            raise ReplicatorStopped("failed to acquire process slot")
        with self._lock:
            self._in_progress += 1
            item = self._queue.next()
            self._tasks[item.hash] = _TaskState.FETCHING
        return item

    def _process_item(self, item: ProcessItem, wait_group: _WaitGroup) -> None:
        next_hashes = self._fetch_links(item)
        with self._lock:
            for hash in next_hashes:
                if self._enqueue(hash):
                    continue
                wait_group.add()
                self._spawn(wait_group)

    def _fetch_links(self, item: ProcessItem) -> list[str]:
        log = self._fetch(item.hash, self.should_exclude)
        with self._buffer_lock:
            self._buffer.append(log)

        next_hashes: list[str] = []
        for entry in log.values():
            self._emit(EventLoadProgress(entry=entry))
            next_hashes.extend(entry.next)
            next_hashes.extend(entry.refs)
        return next_hashes

    def _entry_done(self, item: ProcessItem) -> None:
        with self._lock:
            self._in_progress -= 1
            self._tasks[item.hash] = _TaskState.FETCHED
            try:
                if self._is_idle():
                    self._idle()
            finally:
                self._slots.release()

    def _is_idle(self) -> bool:
        if self._in_progress > 0 and len(self._queue) > 0:
            return False
        return all(state is _TaskState.FETCHED for state in self._tasks.values())

    def _idle(self) -> None:
        with self._buffer_lock:
            if not self._buffer:
                return
            logs = self._buffer
            self._buffer = []
            self._emit(EventLoadEnd(logs=tuple(logs)))