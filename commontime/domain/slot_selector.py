"""
Selects the best meeting starts from a day's availability counts.
"""

from datetime import date
from typing import List, Mapping, Tuple

from pendulum import DateTime

from .models import BestInterval, DayAvailability, OutputMode, minute_of_day


class SlotSelector:
    """
    Reduces moment -> count mappings to the moments most participants can
    attend, and optionally compresses those into contiguous intervals.
    """

    def __init__(self, granularity_minutes: int = 1):
        self.granularity_minutes = granularity_minutes

    def select(
        self,
        day: date,
        counts: Mapping[DateTime, int],
        duration_minutes: int,
        mode: OutputMode = OutputMode.INTERVALS
    ) -> DayAvailability:
        """
        Build the availability record of one day.

        Ties are kept: every moment reaching the maximum is reported.
        """
        max_count, moments = self.best_moments(counts)
        availability = DayAvailability(day=day, counts=dict(counts), max_count=max_count)

        if mode is OutputMode.COUNTS:
            return availability

        availability.best_moments = moments
        if mode is OutputMode.INTERVALS:
            availability.best_intervals = self.compress(moments, duration_minutes, max_count)

        return availability

    @staticmethod
    def best_moments(counts: Mapping[DateTime, int]) -> Tuple[int, List[DateTime]]:
        """Return the maximum count and the sorted moments achieving it."""
        max_count = max(counts.values(), default=0)
        if max_count <= 0:
            return 0, []

        moments = sorted(moment for moment, count in counts.items() if count == max_count)
        return max_count, moments

    def compress(
        self,
        moments: List[DateTime],
        duration_minutes: int,
        available: int
    ) -> List[BestInterval]:
        """
        Merge moments into maximal runs spaced by the enumeration granularity.

        Each run ends at its last start plus the meeting duration.
        """
        intervals: List[BestInterval] = []
        if not moments:
            return intervals

        ordered = sorted(moments)
        run_start = previous = ordered[0]

        for moment in ordered[1:]:
            if not self._is_next(previous, moment):
                intervals.append(self._interval(run_start, previous, duration_minutes, available))
                run_start = moment
            previous = moment

        intervals.append(self._interval(run_start, previous, duration_minutes, available))
        return intervals

    def _is_next(self, previous: DateTime, moment: DateTime) -> bool:
        if previous.date() != moment.date():
            return False
        gap = minute_of_day(moment.time()) - minute_of_day(previous.time())
        return gap <= self.granularity_minutes

    @staticmethod
    def _interval(first: DateTime, last: DateTime, duration_minutes: int, available: int) -> BestInterval:
        return BestInterval(
            start=first,
            last_start=last,
            end=last.add(minutes=duration_minutes),
            available=available
        )

