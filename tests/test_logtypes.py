import pytest

from orbitkit.logtypes import Entry, EntryList


@pytest.fixture
def chain():
    first = Entry(hash="h1", payload=b"one", clock=1)
    second = Entry(hash="h2", payload=b"two", clock=2, next=["h1"])
    third = Entry(hash="h3", payload=b"three", clock=3, next=["h2"])
    return first, second, third


def test_values_keep_insertion_order(chain):
    log = EntryList(chain)
    assert log.values() == list(chain)
    assert len(log) == 3


def test_get_returns_entry_or_none(chain):
    log = EntryList(chain)
    assert log.get("h2") is chain[1]
    assert log.get("missing") is None
    assert "h3" in log
    assert "missing" not in log


def test_append_rejects_duplicates(chain):
    log = EntryList(chain)
    assert log.append(Entry(hash="h1", payload=b"other")) is False
    assert len(log) == 3
    assert log.get("h1").payload == b"one"


def test_heads_of_chain_is_last(chain):
    log = EntryList(chain)
    assert log.heads() == [chain[2]]


def test_heads_of_fork(chain):
    first = chain[0]
    left = Entry(hash="left", next=("h1",))
    right = Entry(hash="right", next=("h1",))
    log = EntryList([first, left, right])
    assert log.heads() == [left, right]


def test_empty_log_has_no_heads():
    log = EntryList(log_id="log")
    assert log.heads() == []
    assert log.values() == []
    assert log.id == "log"


def test_entry_next_is_tuple():
    entry = Entry(hash="h", next=["a", "b"], refs=["c"])
    assert entry.next == ("a", "b")
    assert entry.refs == ("c",)