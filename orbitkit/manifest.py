"""Database manifests describing a store's type and access controller."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

import cbor2


@dataclass(frozen=True)
class Manifest:
    """Name, type and access controller address of a database."""

    name: str
    type: str
    access_controller: str

    def to_dict(self) -> dict[str, str]:
        """Return the manifest with its serialized field names."""
        return {
            "name": self.name,
            "type": self.type,
            "access_controller": self.access_controller,
        }

    def to_cbor(self) -> bytes:
        """Encode the manifest as CBOR."""
        return cbor2.dumps(self.to_dict())

    @classmethod
    def from_cbor(cls, data: bytes) -> Manifest:
        """Decode a manifest from CBOR."""
        try:
            decoded = cbor2.loads(data)
        except cbor2.CBORDecodeError as exc:
            raise ValueError(f"unable to decode manifest: {exc}") from exc
        if not isinstance(decoded, dict):
            raise ValueError("manifest must be a CBOR map")
        fields = {}
        for key in ("name", "type", "access_controller"):
            value = decoded.get(key, "")
            if not isinstance(value, str):
                raise ValueError(f"manifest field {key!r} must be a string")
            fields[key] = value
        return cls(**fields)


def create_manifest(name: str, db_type: str, access_controller_address: str) -> Manifest:
    """Create a manifest whose access controller lives under /ipfs."""
    return Manifest(
        name=name,
        type=db_type,
        access_controller=posixpath.normpath(f"/ipfs/{access_controller_address}"),
    )