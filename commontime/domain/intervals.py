"""
Interval arithmetic on half-open time intervals within a single day.
"""

from typing import Iterable, List, Optional

from .models import TimeInterval


def clamp_to_window(interval: TimeInterval, window: TimeInterval) -> Optional[TimeInterval]:
    """
    Intersect an interval with the window.
    Returns None if the interval lies completely outside the window.
    """
    if interval.end <= window.start or interval.start >= window.end:
        return None

    return TimeInterval(
        start=max(interval.start, window.start),
        end=min(interval.end, window.end)
    )


def subtract(window: TimeInterval, busy: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Subtract busy intervals from a window, yielding the free intervals.

    Busy intervals need not be sorted or disjoint; overlapping ones are
    merged by the cursor advance. Degenerate (zero-length) intervals block
    nothing.

    Example:
    Window: 09:00 - 17:00
    Busy: [14:00-15:00, 10:00-11:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    free: List[TimeInterval] = []
    cursor = window.start

    for interval in sorted(busy):
        if interval.is_empty():
            continue

        if interval.start > cursor:
            free.append(TimeInterval(start=cursor, end=min(interval.start, window.end)))

        cursor = max(cursor, interval.end)
        if cursor >= window.end:
            break

    if cursor < window.end:
        free.append(TimeInterval(start=cursor, end=window.end))

    return [interval for interval in free if not interval.is_empty()]


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Merge overlapping or adjacent intervals.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    merged: List[TimeInterval] = []

    for current in sorted(intervals):
        if current.is_empty():
            continue

        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeInterval(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged


def at_least(intervals: Iterable[TimeInterval], min_duration_minutes: int) -> List[TimeInterval]:
    """Keep only intervals lasting at least ``min_duration_minutes``."""
    return [
        interval for interval in intervals
        if interval.duration_minutes() >= min_duration_minutes
    ]
