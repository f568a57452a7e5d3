"""
Builds per-day free intervals for one participant from their busy intervals.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List

import pendulum
from pendulum import DateTime

from .exceptions import InvalidRequestError
from .intervals import at_least, clamp_to_window, subtract
from .models import (
    MINUTES_PER_DAY,
    BusyInterval,
    ParticipantSchedule,
    TimeInterval,
    WorkingHours,
    minute_of_day,
    require_minutes,
)

logger = logging.getLogger(__name__)


class ScheduleBuilder:
    """
    Turns a participant's busy intervals into free intervals per selected day.

    Algorithm:
    1. Convert every busy interval to the working-hours timezone
    2. Split it at day boundaries, keeping only the selected days
    3. Clamp each piece to the working-hours window
    4. Subtract the pieces from the window, day by day
    5. Drop free intervals shorter than the meeting duration
    """

    def __init__(self, working_hours: WorkingHours):
        self.working_hours = working_hours

    def build(
        self,
        participant_id: str,
        selected_days: Iterable[date],
        busy_intervals: Iterable[BusyInterval],
        duration_minutes: int
    ) -> ParticipantSchedule:
        """
        Build the schedule of one participant.

        Args:
            participant_id: Identifier used for logging and the result
            selected_days: Days the participant can attend; duplicates are ignored
            busy_intervals: Existing commitments, possibly spanning several days
            duration_minutes: Required meeting length

        Returns:
            ParticipantSchedule with an entry (possibly empty) for every selected day
        """
        require_minutes(duration_minutes, "Meeting duration")
        if duration_minutes <= 0:
            raise InvalidRequestError(f"Meeting duration must be positive, got {duration_minutes}")

        days = frozenset(selected_days)
        busy_by_day = self.split_by_day(busy_intervals, days)
        window = self.working_hours.window

        availability: Dict[date, List[TimeInterval]] = {}
        for day in sorted(days):
            free = subtract(window, busy_by_day.get(day, []))
            availability[day] = at_least(free, duration_minutes)

        logger.debug(
            "Built schedule for %s: %d day(s), %d free interval(s)",
            participant_id,
            len(availability),
            sum(len(intervals) for intervals in availability.values()),
        )

        return ParticipantSchedule(
            participant_id=participant_id,
            selected_days=days,
            availability=availability
        )

    def split_by_day(
        self,
        busy_intervals: Iterable[BusyInterval],
        days: Iterable[date]
    ) -> Dict[date, List[TimeInterval]]:
        """
        Split busy intervals into per-day pieces clamped to working hours.

        The first day of a multi-day interval is busy from its start, the last
        day until its end, and every day in between for the whole window.
        Pieces falling outside the window or on other days are dropped.
        """
        wanted = sorted(set(days))
        window = self.working_hours.window
        pieces: Dict[date, List[TimeInterval]] = defaultdict(list)

        for busy in busy_intervals:
            start = self._localize(busy.start)
            end = self._localize(busy.end)
            start_day = start.date()
            end_day = end.date()

            for day in wanted:
                if day < start_day or day > end_day:
                    continue

                day_start = minute_of_day(start.time()) if day == start_day else 0
                day_end = minute_of_day(end.time()) if day == end_day else MINUTES_PER_DAY
                if day_start >= day_end:
                    continue

                clamped = clamp_to_window(TimeInterval(start=day_start, end=day_end), window)
                if clamped is not None:
                    pieces[day].append(clamped)

        return dict(pieces)

    def _localize(self, value: datetime) -> DateTime:
        """Express a date-time in the working-hours timezone."""
        if value.tzinfo is None:
            return pendulum.instance(value, tz=self.working_hours.timezone)
        return pendulum.instance(value).in_timezone(self.working_hours.timezone)
