import pytest

from orbitkit.oneonone import PROTOCOL, channel_id


def test_channel_id_format():
    assert channel_id("QmB", "QmA") == "/ipfs-pubsub-direct-channel/v1/QmA/QmB"


@pytest.mark.parametrize(
    "left, right",
    [("QmA", "QmB"), ("peer-z", "peer-a"), ("a", "B"), ("same", "same")],
)
def test_channel_id_is_symmetric(left, right):
    assert channel_id(left, right) == channel_id(right, left)


def test_channel_id_orders_bytewise():
    result = channel_id("a", "B")
    assert result == f"/{PROTOCOL}/B/a"


def test_channel_id_contains_both_peers_after_protocol():
    result = channel_id("peer-one", "peer-two")
    prefix = f"/{PROTOCOL}/"
    assert result.startswith(prefix)
    assert sorted(result[len(prefix):].split("/")) == ["peer-one", "peer-two"]


def test_channel_id_same_peer_twice():
    assert channel_id("self", "self") == f"/{PROTOCOL}/self/self"