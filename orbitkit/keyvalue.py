"""Operations and lookups of a key-value store."""

from __future__ import annotations

from typing import Any, Protocol

from .operation import Operation


class _Index(Protocol):
    def get(self, key: str) -> Any: ...


def put_operation(key: str, value: bytes) -> Operation:
    """Build the operation that stores a value under a key."""
    return Operation(key=key, op="PUT", value=value)


def delete_operation(key: str) -> Operation:
    """Build the operation that removes a key."""
    return Operation(key=key, op="DEL", value=None)


def get_value(index: _Index, key: str) -> bytes | None:
    """Return the value stored under a key, or None when there is none."""
    value = index.get(key)
    if value is None:
        return None
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError("unable to cast to bytes")
    return bytes(value)