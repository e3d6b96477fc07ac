"""Serializable store operations carried in log entry payloads."""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .logtypes import Entry

_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class OperationError(ValueError):
    """Raised when an operation payload cannot be decoded."""


def _encode_bytes(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _decode_bytes(value: Any, name: str) -> bytes | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise OperationError(f"field {name!r} must be a base64 string")
    cleaned = value.replace("\r", "").replace("\n", "")
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise OperationError(f"field {name!r} is not valid base64: {exc}") from exc


def _dump(document: Any) -> bytes:
    text = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _GO_ESCAPES.items():
        text = text.replace(char, escaped)
    return text.encode("utf-8")


@dataclass(frozen=True)
class OpDoc:
    """A keyed document inside a batched operation."""

    key: str = ""
    value: bytes = b""

    def _to_json(self) -> dict[str, str]:
        document: dict[str, str] = {}
        if self.key:
            document["key"] = self.key
        if self.value:
            document["value"] = _encode_bytes(self.value)
        return document

    @classmethod
    def _from_json(cls, raw: Any) -> OpDoc:
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise OperationError("document must be a JSON object")
        key = raw.get("key")
        if key is None:
            key = ""
        if not isinstance(key, str):
            raise OperationError("document key must be a string")
        value = _decode_bytes(raw.get("value"), "value")
        return cls(key=key, value=value or b"")


@dataclass(frozen=True)
class Operation:
    """A CRDT operation: a name, an optional key, a payload and batched documents."""

    key: str | None
    op: str
    value: bytes | None = None
    docs: tuple[OpDoc, ...] = ()
    entry: Entry | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "docs", tuple(self.docs))

    @classmethod
    def with_documents(cls, key: str | None, op: str, docs: Mapping[str, bytes]) -> Operation:
        """Build an operation that carries a batch of documents."""
        return cls(
            key=key,
            op=op,
            docs=tuple(OpDoc(key=k, value=v) for k, v in docs.items()),
        )

    def marshal(self) -> bytes:
        """Serialize the operation as compact JSON, omitting empty fields."""
        document: dict[str, Any] = {}
        if self.key is not None:
            document["key"] = self.key
        if self.op:
            document["op"] = self.op
        if self.value:
            document["value"] = _encode_bytes(self.value)
        if self.docs:
            document["docs"] = [doc._to_json() for doc in self.docs]
        return _dump(document)


def parse_operation(entry: Entry | None) -> Operation:
    """Decode the operation stored in an entry's payload."""
    if entry is None:
        raise ValueError("an entry must be provided")

    try:
        raw = json.loads(entry.payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise OperationError(f"unable to parse operation json: {exc}") from exc

    if raw is None:
        return Operation(key=None, op="", entry=entry)
    if not isinstance(raw, dict):
        raise OperationError("unable to parse operation json: not an object")

    key = raw.get("key")
    if key is not None and not isinstance(key, str):
        raise OperationError("operation key must be a string")

    op = raw.get("op")
    if op is None:
        op = ""
    if not isinstance(op, str):
        raise OperationError("operation name must be a string")

    value = _decode_bytes(raw.get("value"), "value")

    raw_docs = raw.get("docs")
    if raw_docs is None:
        raw_docs = []
    if not isinstance(raw_docs, list):
        raise OperationError("operation docs must be a list")
    docs = tuple(OpDoc._from_json(doc) for doc in raw_docs)

    return Operation(key=key, op=op, value=value, docs=docs, entry=entry)