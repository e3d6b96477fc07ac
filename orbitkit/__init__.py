"""Building blocks for OrbitDB-style stores: log entries, operations, indexes, event log queries, replication, snapshots, manifests and message framing."""

__version__ = "0.1.0"