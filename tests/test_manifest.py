import cbor2
import pytest

from orbitkit.manifest import Manifest, create_manifest


def test_create_manifest_prefixes_ipfs():
    manifest = create_manifest("db", "docstore", "zdpuAddress")
    assert manifest.access_controller == "/ipfs/zdpuAddress"
    assert manifest.name == "db"
    assert manifest.type == "docstore"


def test_create_manifest_cleans_path():
    assert create_manifest("db", "keyvalue", "").access_controller == "/ipfs"
    assert create_manifest("db", "keyvalue", "a//b/").access_controller == "/ipfs/a/b"


def test_to_dict_uses_serial_names():
    manifest = create_manifest("db", "eventlog", "addr")
    assert manifest.to_dict() == {
        "name": manifest.name,
        "type": manifest.type,
        "access_controller": manifest.access_controller,
    }


def test_cbor_round_trip():
    manifest = create_manifest("orbit-db-tests", "docstore", "addr")
    assert Manifest.from_cbor(manifest.to_cbor()) == manifest
    assert cbor2.loads(manifest.to_cbor()) == manifest.to_dict()


def test_from_cbor_rejects_non_map():
    with pytest.raises(ValueError):
        Manifest.from_cbor(cbor2.dumps([1, 2]))


def test_from_cbor_rejects_garbage():
    with pytest.raises(ValueError):
        Manifest.from_cbor(b"")


def test_from_cbor_rejects_non_string_field():
    with pytest.raises(ValueError):
        Manifest.from_cbor(cbor2.dumps({"name": 1, "type": "t", "access_controller": "a"}))