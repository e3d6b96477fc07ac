# orbitkit

Pure-Python building blocks for OrbitDB-style peer-to-peer databases.
An append-only log of entries holds serialized operations. Indexes fold
those operations into a view of the data, and a replicator fetches missing
entries from peers. This package has those pieces. None of them needs a
running IPFS node; the network and storage are left to the caller.

## What is inside

| Module | Purpose |
| --- | --- |
| `orbitkit.logtypes` | `Entry` and `EntryList`, the small log model the rest builds on |
| `orbitkit.operation` | `Operation`, `OpDoc`, `parse_operation` and `OperationError`: the JSON operations stored in entry payloads |
| `orbitkit.indexes` | `BaseIndex`, `NoopIndex`, `KeyValueIndex`, `DocumentIndex`, `EventIndex` |
| `orbitkit.keyvalue` | `put_operation`, `delete_operation`, `get_value` for key-value stores |
| `orbitkit.eventlog` | Event log reads: `StreamOptions`, `query`, `read`, `stream` (gt / gte / lt / lte / amount) |
| `orbitkit.replication` | `ReplicationInfo`, `ProcessItem`, `ProcessQueue` and the events `EventLoadAdded`, `EventLoadProgress`, `EventLoadEnd` |
| `orbitkit.progress` | `recalculate_max`, `recalculate_progress`, `recalculate_status` for replication bookkeeping |
| `orbitkit.replicator` | `Replicator`, which walks entry hashes with bounded concurrency, skips known work and reports when it is idle |
| `orbitkit.snapshot` | The length-prefixed snapshot format: `SnapshotHeader`, `Snapshot`, `encode_snapshot`, `decode_snapshot` |
| `orbitkit.manifest` | `Manifest` and `create_manifest`, database manifests encoded as CBOR |
| `orbitkit.directchannel` | Uvarint length-prefixed frames for direct peer messages, limited to 2048 bytes |
| `orbitkit.oneonone` | `channel_id`, the topic name two peers share |

## Examples

### Key-value index

```python
from orbitkit.indexes import KeyValueIndex
from orbitkit.keyvalue import delete_operation, get_value, put_operation
from orbitkit.logtypes import Entry, EntryList

log = EntryList(log_id="kv")
log.append(Entry(hash="h1", payload=put_operation("a", b"1").marshal(), clock=1))
log.append(Entry(hash="h2", payload=put_operation("b", b"x").marshal(), clock=2, next=("h1",)))
log.append(Entry(hash="h3", payload=put_operation("a", b"2").marshal(), clock=3, next=("h2",)))
log.append(Entry(hash="h4", payload=delete_operation("b").marshal(), clock=4, next=("h3",)))

index = KeyValueIndex()
index.update_index(log)
assert get_value(index, "a") == b"2"   # the newest PUT wins
assert get_value(index, "b") is None   # removed by DEL
```

The indexes replay the log newest first, so the latest `PUT` or `DEL` for a
key decides its value. `DocumentIndex` does the same for documents and also
applies batched `PUTALL` operations.

### Event log queries

```python
from orbitkit.eventlog import StreamOptions, query, stream
from orbitkit.logtypes import Entry
from orbitkit.operation import Operation

entries = [
    Entry(hash=f"h{i}", payload=Operation(key=None, op="ADD", value=f"hello{i}".encode()).marshal())
    for i in range(5)
]

assert [e.hash for e in query(entries)] == ["h4"]                        # one item by default
assert len(query(entries, StreamOptions(amount=-1))) == 5                # negative: all items
assert [e.hash for e in query(entries, StreamOptions(gt="h2", amount=-1))] == ["h3", "h4"]
assert [op.value for op in stream(entries, StreamOptions(lt="h4", amount=2))] == [b"hello2", b"hello3"]
```

### Replication

A `Replicator` needs a store with an `oplog` attribute (anything with
`get(hash)`) and a `fetch(hash, should_exclude)` callable that returns an
`EntryList`. It follows each fetched entry's `next` and `refs` links, runs at
most `concurrency` fetches at once (32 by default) and, once everything queued
has been fetched, emits an `EventLoadEnd` carrying the fetched logs.

```python
from orbitkit.logtypes import Entry, EntryList
from orbitkit.replication import EventLoadEnd
from orbitkit.replicator import Replicator

remote = {
    "h1": Entry(hash="h1", clock=1),
    "h2": Entry(hash="h2", clock=2, next=("h1",)),
    "h3": Entry(hash="h3", clock=3, next=("h2",)),
}

class LocalStore:
    def __init__(self):
        self.oplog = EntryList()

replicator = Replicator(LocalStore(), lambda hash, should_exclude: EntryList([remote[hash]]))
events = []
replicator.subscribe(events.append)
replicator.load([remote["h3"]])   # returns once h3, h2 and h1 have been fetched

end = [e for e in events if isinstance(e, EventLoadEnd)][-1]
print(sorted(entry.hash for log in end.logs for entry in log))
# ['h1', 'h2', 'h3']
```

`orbitkit.progress` keeps a `ReplicationInfo` up to date as entries arrive:
`recalculate_status(info, oplog_length, max_total)` raises the maximum, then
advances the progress, and returns `(progress, maximum)`.

### Snapshots

```python
from orbitkit.logtypes import Entry
from orbitkit.snapshot import SnapshotHeader, decode_snapshot, encode_snapshot

entries = [Entry(hash="h1", payload=b"a", clock=1), Entry(hash="h2", payload=b"b", clock=2, next=("h1",))]
header = SnapshotHeader(id="log", heads=(entries[1],), size=len(entries), type="eventlog")

snapshot = decode_snapshot(encode_snapshot(header, entries))
assert snapshot.entries == tuple(entries)
assert snapshot.max_clock == 2
assert snapshot.head_hashes == ["h2"]
```

Each part is a JSON document preceded by its length as a 16-bit big-endian
integer; the data ends with a zero byte. Parts that do not fit 16 bits, or a
header whose `size` does not match the entries given, raise `SnapshotError`.

### Database manifests

```python
from orbitkit.manifest import Manifest, create_manifest

manifest = create_manifest("my-db", "keyvalue", "bafyexampleaccesscontroller")
assert Manifest.from_cbor(manifest.to_cbor()) == manifest
print(manifest.to_dict())
# {'name': 'my-db', 'type': 'keyvalue', 'access_controller': '/ipfs/bafyexampleaccesscontroller'}
```

### Framing direct-channel messages

```python
import io

from orbitkit.directchannel import FrameError, encode_frame, read_frame

assert read_frame(io.BytesIO(encode_frame(b"hello"))) == b"hello"

try:
    read_frame(io.BytesIO(encode_frame(b"x" * 4096)))
except FrameError:
    print("payload larger than the 2048-byte limit")
```

### One-to-one channel topics

Both peers arrive at the same topic name because the two peer IDs are
sorted before they are joined:

```python
from orbitkit.oneonone import channel_id

assert channel_id("QmAlice", "QmBob") == channel_id("QmBob", "QmAlice")
print(channel_id("QmAlice", "QmBob"))
# /ipfs-pubsub-direct-channel/v1/QmAlice/QmBob
```

## What this package does not do

- It has no network layer. It does not connect to peers, open streams or
  publish on topics; `orbitkit.directchannel` and `orbitkit.oneonone` only
  frame messages and name topics, and the replicator's `fetch` callable is
  supplied by the caller.
- It has no persistent storage or cache. Logs live in memory as `EntryList`
  objects, and snapshots are returned as bytes for the caller to keep.
- It does not create, sign or verify log entries, and it has no access
  control. Entry hashes are whatever strings the caller gives.
- There are no ready-made store objects that tie a log, an index and the
  replicator together, no document store lookups beyond `DocumentIndex`,
  no tracking of which peers are on a topic, and no command-line tool.

## Running the tests

The test suite uses pytest, declared under the `test` extra:

```
pip install -e ".[test]"
pytest
```