"""Binary snapshots of a store's log: a JSON header followed by JSON entries."""

from __future__ import annotations

import base64
import binascii
import json
import struct
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .logtypes import Entry

_MAX_FRAME = 0xFFFF
_LENGTH = struct.Struct(">H")


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be encoded or decoded."""


def _dump(document: Any) -> bytes:
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _entry_to_json(entry: Entry) -> dict[str, Any]:
    return {
        "hash": entry.hash,
        "payload": base64.b64encode(entry.payload).decode("ascii"),
        "clock": entry.clock,
        "next": list(entry.next),
        "refs": list(entry.refs),
    }


def _string_list(raw: Any, name: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise SnapshotError(f"entry field {name!r} must be a list of strings")
    return tuple(raw)


def _entry_from_json(raw: Any) -> Entry:
    if not isinstance(raw, dict):
        raise SnapshotError("entry must be a JSON object")
    hash_value = raw.get("hash", "")
    if not isinstance(hash_value, str):
        raise SnapshotError("entry hash must be a string")
    payload_raw = raw.get("payload")
    if payload_raw is None:
        payload = b""
    elif isinstance(payload_raw, str):
        try:
            payload = base64.b64decode(payload_raw, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise SnapshotError(f"entry payload is not valid base64: {exc}") from exc
    else:
        raise SnapshotError("entry payload must be a base64 string")
    clock = raw.get("clock", 0)
    if clock is None:
        clock = 0
    if isinstance(clock, bool) or not isinstance(clock, int):
        raise SnapshotError("entry clock must be an integer")
    return Entry(
        hash=hash_value,
        payload=payload,
        clock=clock,
        next=_string_list(raw.get("next"), "next"),
        refs=_string_list(raw.get("refs"), "refs"),
    )


@dataclass(frozen=True)
class SnapshotHeader:
    """Log id, heads, entry count and store type of a snapshot."""

    id: str = ""
    heads: tuple[Entry, ...] = ()
    size: int = 0
    type: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "heads", tuple(self.heads))

    def _to_json(self) -> dict[str, Any]:
        document: dict[str, Any] = {}
        if self.id:
            document["id"] = self.id
        if self.heads:
            document["heads"] = [_entry_to_json(head) for head in self.heads]
        if self.size:
            document["size"] = self.size
        if self.type:
            document["type"] = self.type
        return document

    @classmethod
    def _from_json(cls, raw: Any) -> SnapshotHeader:
        if not isinstance(raw, dict):
            raise SnapshotError("unable to decode header: not an object")
        log_id = raw.get("id") or ""
        store_type = raw.get("type") or ""
        if not isinstance(log_id, str) or not isinstance(store_type, str):
            raise SnapshotError("unable to decode header: id and type must be strings")
        size = raw.get("size") or 0
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise SnapshotError("unable to decode header: size must be a non-negative integer")
        heads_raw = raw.get("heads") or []
        if not isinstance(heads_raw, list):
            raise SnapshotError("unable to decode header: heads must be a list")
        heads = tuple(_entry_from_json(head) for head in heads_raw)
        return cls(id=log_id, heads=heads, size=size, type=store_type)


@dataclass(frozen=True)
class Snapshot:
    """A decoded snapshot: its header and the log entries it carries."""

    header: SnapshotHeader
    entries: tuple[Entry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))

    @property
    def max_clock(self) -> int:
        """The highest clock time among the entries, or 0."""
        return max((entry.clock for entry in self.entries), default=0)

    @property
    def head_hashes(self) -> list[str]:
        """The hashes of the header's heads, in order."""
        return [head.hash for head in self.header.heads]


def _frame(data: bytes) -> bytes:
    if len(data) > _MAX_FRAME:
        raise SnapshotError(f"frame of {len(data)} bytes does not fit a 16-bit length")
    return _LENGTH.pack(len(data)) + data


def encode_snapshot(header: SnapshotHeader, entries: Iterable[Entry]) -> bytes:
    """Serialize a header and its entries, each prefixed by a 16-bit big-endian length."""
    entries = list(entries)
    if header.size != len(entries):
        raise SnapshotError(
            f"header announces {header.size} entries but {len(entries)} were given"
        )
    parts = [_frame(_dump(header._to_json()))]
    parts.extend(_frame(_dump(_entry_to_json(entry))) for entry in entries)
    parts.append(b"\x00")
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._offset = 0

    def take(self, count: int) -> bytes:
        end = self._offset + count
        if end > len(self._data):
            raise SnapshotError("unable to read from stream: unexpected end of data")
        chunk = bytes(self._data[self._offset:end])
        self._offset = end
        return chunk

    def frame(self) -> bytes:
        (length,) = _LENGTH.unpack(self.take(_LENGTH.size))
        return self.take(length)


def _load_json(data: bytes, what: str) -> Any:
    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise SnapshotError(f"unable to decode {what}: {exc}") from exc


def decode_snapshot(data: bytes) -> Snapshot:
    """Parse a snapshot produced by :func:`encode_snapshot`."""
    reader = _Reader(bytes(data))
    header = SnapshotHeader._from_json(_load_json(reader.frame(), "header"))
    entries = [
        _entry_from_json(_load_json(reader.frame(), "entry")) for _ in range(header.size)
    ]
    return Snapshot(header=header, entries=tuple(entries))