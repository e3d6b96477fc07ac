"""Queries over an append-only event log."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .logtypes import Entry
from .operation import Operation, parse_operation


@dataclass(frozen=True)
class StreamOptions:
    """Range and amount of an event log query.

    An amount of 0 or None means one item; a negative amount means all items.
    """

    gt: str | None = None
    gte: str | None = None
    lt: str | None = None
    lte: str | None = None
    amount: int | None = None


def read(entries: Sequence[Entry], hash: str | None, amount: int, inclusive: bool) -> list[Entry]:
    """Take up to ``amount`` entries starting at ``hash`` (or at the start if absent)."""
    start = next((i for i, entry in enumerate(entries) if entry.hash == hash), 0)
    if not inclusive:
        start += 1
    remaining = list(entries[start:])
    if amount < 0:
        return remaining
    return remaining[:amount]


def query(entries: Sequence[Entry] | None, options: StreamOptions | None = None) -> list[Entry]:
    """Select entries of the log according to the options, oldest first."""
    if options is None:
        options = StreamOptions()
    if entries is None:
        return []

    events = list(entries)

    amount = 1
    if options.amount is not None:
        if options.amount == 0:
            amount = 1
        elif options.amount > -1:
            amount = options.amount
        else:
            amount = len(events)

    if options.gt is not None or options.gte is not None:
        start = options.gt if options.gt is not None else options.gte
        return read(events, start, amount, options.gte is not None)

    if options.lt is not None:
        end = options.lt
    else:
        end = options.lte

    # Search newest first, then restore log order.
    events.reverse()
    result = read(events, end, amount, options.lte is not None or options.lt is None)
    result.reverse()
    return result


def stream(entries: Sequence[Entry] | None, options: StreamOptions | None = None) -> Iterator[Operation]:
    """Yield the operations of the selected entries, oldest first."""
    for entry in query(entries, options):
        yield parse_operation(entry)