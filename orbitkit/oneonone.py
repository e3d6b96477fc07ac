"""Naming of the publish/subscribe topic shared by exactly two peers."""

from __future__ import annotations

PROTOCOL = "ipfs-pubsub-direct-channel/v1"
HELLO_PACKET = "hello"


def channel_id(self_id: str, peer_id: str) -> str:
    """Return the topic of the channel between two peers, the same from either side."""
    first, second = sorted((self_id, peer_id))
    return f"/{PROTOCOL}/{first}/{second}"