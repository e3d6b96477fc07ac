"""Bookkeeping of a store's replication progress and maximum."""

from __future__ import annotations

from .replication import ReplicationInfo


def recalculate_max(info: ReplicationInfo, oplog_length: int, maximum: int) -> int:
    """Raise the replication maximum to the log length or the known maximum.

    The log length wins when it exceeds ``maximum``; otherwise the larger of
    ``maximum`` and the recorded maximum is kept. Returns the stored value.
    """
    if oplog_length > maximum:
        maximum = oplog_length
    elif info.maximum > maximum:
        maximum = info.maximum
    info.maximum = maximum
    return maximum


def recalculate_progress(info: ReplicationInfo, oplog_length: int) -> int:
    """Advance replication progress by one, bounded by the maximum and the log length.

    Progress moves to one past its current value unless that passes the
    maximum, and never falls below the log length. Returns the stored value.
    """
    progress = info.maximum
    advanced = info.progress + 1
    if advanced < progress:
        progress = advanced
    if oplog_length > progress:
        progress = oplog_length
    info.progress = progress
    return progress


def recalculate_status(info: ReplicationInfo, oplog_length: int, max_total: int) -> tuple[int, int]:
    """Update the maximum, then the progress; return ``(progress, maximum)``."""
    maximum = recalculate_max(info, oplog_length, max_total)
    progress = recalculate_progress(info, oplog_length)
    return progress, maximum