import threading
from types import SimpleNamespace

import pytest

from orbitkit.logtypes import Entry, EntryList
from orbitkit.replication import EventLoadAdded, EventLoadEnd, EventLoadProgress
from orbitkit.replicator import DEFAULT_CONCURRENCY, Replicator


class FakeNetwork:
    def __init__(self, entries):
        self.entries = {entry.hash: entry for entry in entries}
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, hash, should_exclude):
        with self._lock:
            self.calls.append(hash)
        return EntryList([self.entries[hash]])


def make_store(*entries):
    return SimpleNamespace(oplog=EntryList(entries, log_id="log"))


def record(replicator):
    events = []
    lock = threading.Lock()

    def handler(event):
        with lock:
            events.append(event)

    unsubscribe = replicator.subscribe(handler)
    return events, unsubscribe


C1 = Entry(hash="c1", payload=b"one", clock=1)
C2 = Entry(hash="c2", payload=b"two", clock=2, next=("c1",))
C3 = Entry(hash="c3", payload=b"three", clock=3, next=("c2",))


def test_load_follows_chain_and_emits_one_end():
    network = FakeNetwork([C1, C2, C3])
    replicator = Replicator(make_store(), network.fetch)
    events, _ = record(replicator)

    replicator.load([C3])

    added = [e for e in events if isinstance(e, EventLoadAdded)]
    assert added == [EventLoadAdded(hash="c3", entry=C3)]

    ends = [e for e in events if isinstance(e, EventLoadEnd)]
    assert len(ends) == 1
    fetched = sorted(entry.hash for log in ends[0].logs for entry in log.values())
    assert fetched == ["c1", "c2", "c3"]

    progress = {e.entry.hash for e in events if isinstance(e, EventLoadProgress)}
    assert progress == {"c1", "c2", "c3"}
    assert replicator.get_queue() == []
    assert replicator.should_exclude("c2") is True


def test_refs_are_followed():
    r1 = Entry(hash="r1", payload=b"ref")
    head = Entry(hash="h", payload=b"head", refs=("r1",))
    network = FakeNetwork([r1, head])
    replicator = Replicator(make_store(), network.fetch)

    replicator.load([head])

    assert sorted(network.calls) == ["h", "r1"]


def test_entries_in_oplog_are_not_fetched():
    network = FakeNetwork([C1, C2, C3])
    replicator = Replicator(make_store(C2), network.fetch)
    events, _ = record(replicator)

    replicator.load([C3])

    assert network.calls == ["c3"]
    assert [e.hash for e in events if isinstance(e, EventLoadAdded)] == ["c3"]


def test_head_already_in_oplog_is_ignored():
    network = FakeNetwork([C1])
    replicator = Replicator(make_store(C1), network.fetch)
    events, _ = record(replicator)

    replicator.load([C1])

    assert network.calls == []
    assert events == []


def test_diamond_fetches_shared_ancestor_once():
    left = Entry(hash="left", next=("c1",))
    right = Entry(hash="right", next=("c1",))
    top = Entry(hash="top", next=("left", "right"))
    network = FakeNetwork([C1, left, right, top])
    replicator = Replicator(make_store(), network.fetch)

    replicator.load([top])

    assert network.calls.count("c1") == 1
    assert sorted(network.calls) == ["c1", "left", "right", "top"]


def test_loading_twice_does_not_refetch():
    network = FakeNetwork([C1])
    replicator = Replicator(make_store(), network.fetch)
    events, _ = record(replicator)

    replicator.load([C1])
    replicator.load([C1])

    assert network.calls == ["c1"]
    assert len([e for e in events if isinstance(e, EventLoadAdded)]) == 1


def test_should_exclude_unknown_hash():
    replicator = Replicator(make_store(C1), FakeNetwork([]).fetch)
    assert replicator.should_exclude("c1") is True
    assert replicator.should_exclude("unknown") is False


def test_fetch_failure_marks_task_done_without_end_event():
    def fetch(hash, should_exclude):
        raise KeyError(hash)

    bad = Entry(hash="bad")
    replicator = Replicator(make_store(), fetch)
    events, _ = record(replicator)

    replicator.load([bad])

    assert not any(isinstance(e, EventLoadEnd) for e in events)
    assert replicator.get_queue() == []
    assert replicator.should_exclude("bad") is True


def test_stopped_replicator_fetches_nothing():
    network = FakeNetwork([C1])
    replicator = Replicator(make_store(), network.fetch)
    events, _ = record(replicator)

    replicator.stop()
    replicator.load([C1])

    assert network.calls == []
    assert events == []
    assert replicator.get_queue() == ["c1"]


def test_unsubscribe_stops_delivery():
    network = FakeNetwork([C1])
    replicator = Replicator(make_store(), network.fetch)
    events, unsubscribe = record(replicator)

    unsubscribe()
    replicator.load([C1])

    assert events == []
    assert network.calls == ["c1"]


def test_concurrency_defaults_and_validation():
    fetch = FakeNetwork([]).fetch
    assert Replicator(make_store(), fetch).concurrency == DEFAULT_CONCURRENCY
    assert Replicator(make_store(), fetch, concurrency=4).concurrency == 4
    with pytest.raises(ValueError):
        Replicator(make_store(), fetch, concurrency=-1)


def test_concurrency_limit_is_respected():
    heads = [Entry(hash=f"h{i}") for i in range(6)]
    entries = {e.hash: e for e in heads}
    lock = threading.Lock()
    state = {"running": 0, "peak": 0}

    def fetch(hash, should_exclude):
        with lock:
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
        threading.Event().wait(0.01)
        with lock:
            state["running"] -= 1
        return EntryList([entries[hash]])

    replicator = Replicator(make_store(), fetch, concurrency=1)
    events, _ = record(replicator)
    replicator.load(heads)

    assert state["peak"] == 1
    ends = [e for e in events if isinstance(e, EventLoadEnd)]
    fetched = sorted(entry.hash for end in ends for log in end.logs for entry in log.values())
    assert fetched == sorted(entries)