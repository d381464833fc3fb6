from typing import Optional

from .models import StreamStatus


def has_time_window(start_time: Optional[int], stop_time: Optional[int]) -> bool:
    return start_time is not None and stop_time is not None and stop_time > start_time


def derive_status(now: int,
                  start_time: Optional[int] = None,
                  stop_time: Optional[int] = None,
                  paused: Optional[bool] = None,
                  closed: Optional[bool] = None,
                  event_derived: bool = False) -> Optional[StreamStatus]:
    """
    Lifecycle state of a stream.

    Explicit flags win over time: closed, then paused. Otherwise the state
    follows ``now`` against ``[start_time, stop_time)``. Without a usable
    window the status is left out for event-derived records and for records
    with no flags at all.
    """
    if closed:
        return StreamStatus.CLOSED
    if paused:
        return StreamStatus.PAUSED
    if has_time_window(start_time, stop_time):
        if now < start_time:
            return StreamStatus.NOT_STARTED
        if now >= stop_time:
            return StreamStatus.COMPLETED
        return StreamStatus.ACTIVE
    if event_derived:
        return None
    if closed is not None or paused is not None:
        return StreamStatus.ACTIVE
    return None


def derive_progress(now: int,
                    start_time: Optional[int] = None,
                    stop_time: Optional[int] = None,
                    closed: Optional[bool] = None) -> Optional[str]:
    """Percent of the vesting window elapsed, as 'N%'"""
    if closed:
        return '100%'
    if not has_time_window(start_time, stop_time):
        return None
    if now < start_time:
        return '0%'
    if now >= stop_time:
        return '100%'
    percentage = (now - start_time) * 100 // (stop_time - start_time)
    return f"{max(0, min(100, percentage))}%"
