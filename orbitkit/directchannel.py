"""Length-prefixed framing for direct peer-to-peer messages."""

from __future__ import annotations

from typing import BinaryIO

DELIMITED_READ_MAX_SIZE = 2048
MAX_VARINT_LEN64 = 10
_UINT64_LIMIT = 1 << 64


class FrameError(ValueError):
    """Raised when a frame cannot be read from a stream."""


def encode_uvarint(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as a base-128 varint."""
    if value < 0 or value >= _UINT64_LIMIT:
        raise ValueError("value out of range for an unsigned 64-bit varint")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _read_uvarint(reader: BinaryIO) -> int:
    result = 0
    shift = 0
    for index in range(MAX_VARINT_LEN64):
        chunk = reader.read(1)
        if not chunk:
            reason = "EOF" if index == 0 else "unexpected EOF"
            raise FrameError(f"unable to read length: {reason}")
        byte = chunk[0]
        if byte < 0x80:
            if index == MAX_VARINT_LEN64 - 1 and byte > 1:
                raise FrameError("unable to read length: varint overflows a 64-bit integer")
            return result | (byte << shift)
        result |= (byte & 0x7F) << shift
        shift += 7
    raise FrameError("unable to read length: varint overflows a 64-bit integer")


def encode_frame(payload: bytes) -> bytes:
    """Prefix a payload with its length as a varint."""
    return encode_uvarint(len(payload)) + bytes(payload)


def read_frame(reader: BinaryIO) -> bytes:
    """Read one length-prefixed payload, refusing ones above the size limit."""
    length = _read_uvarint(reader)
    if length > DELIMITED_READ_MAX_SIZE:
        raise FrameError(f"invalid buffer length: {length}")

    chunks = []
    remaining = length
    while remaining:
        chunk = reader.read(remaining)
        if not chunk:
            raise FrameError("unable to read buffer: unexpected EOF")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)