"""Log entries and the ordered, hash-indexed collections that hold them."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class Entry:
    """A single log entry, identified by its content hash."""

    hash: str
    payload: bytes = b""
    clock: int = 0
    next: tuple[str, ...] = ()
    refs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "next", tuple(self.next))
        object.__setattr__(self, "refs", tuple(self.refs))


class EntryList:
    """An ordered log of entries, looked up by hash."""

    def __init__(self, entries: Iterable[Entry] = (), log_id: str = "") -> None:
        self.id = log_id
        self._entries: dict[str, Entry] = {}
        for entry in entries:
            self.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(list(self._entries.values()))

    def __contains__(self, hash: object) -> bool:
        return hash in self._entries

    def values(self) -> list[Entry]:
        """Return the entries in log order."""
        return list(self._entries.values())

    def get(self, hash: str) -> Entry | None:
        """Return the entry with the given hash, or None."""
        return self._entries.get(hash)

    def append(self, entry: Entry) -> bool:
        """Add an entry; return False if an entry with its hash is already present."""
        if entry.hash in self._entries:
            return False
        self._entries[entry.hash] = entry
        return True

    def heads(self) -> list[Entry]:
        """Return the entries that no other entry points to, in log order."""
        referenced = {h for entry in self._entries.values() for h in entry.next}
        return [e for e in self._entries.values() if e.hash not in referenced]