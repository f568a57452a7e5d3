"""
Sweep-line counting of how many participants can attend each meeting start.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

import pendulum
from pendulum import DateTime

from .models import EventKind, ParticipantSchedule, TimeEvent, WorkingHours

logger = logging.getLogger(__name__)


class AvailabilitySweep:
    """
    Counts, for one day, the participants free for a whole meeting at each
    candidate start.

    A free interval ``[s, e)`` admits meeting starts ``s .. e - duration``.
    It contributes a START event at ``s`` and an END event at
    ``e - duration + 1``, the first minute at which the meeting no longer
    fits. Between two consecutive event times the running count is constant
    and equals the number of participants free for ``[m, m + duration)``.

    Events are ordered by time with END before START at equal times; a
    segment is only recorded between distinct event times, so touching
    intervals are never double counted.
    """

    def __init__(self, working_hours: WorkingHours, granularity_minutes: int = 1):
        self.working_hours = working_hours
        self.granularity_minutes = granularity_minutes

    def collect_events(
        self,
        day: date,
        schedules: Iterable[ParticipantSchedule],
        duration_minutes: int
    ) -> List[TimeEvent]:
        """Sweep events of every participant who selected the day, sorted."""
        events: List[TimeEvent] = []

        for schedule in schedules:
            if day not in schedule.selected_days:
                continue

            for interval in schedule.free_intervals(day):
                latest_start = interval.end - duration_minutes
                if latest_start < interval.start:
                    continue
                events.append(TimeEvent(time=interval.start, kind=EventKind.START))
                events.append(TimeEvent(time=latest_start + 1, kind=EventKind.END))

        return sorted(events)

    def count_day(
        self,
        day: date,
        schedules: Iterable[ParticipantSchedule],
        duration_minutes: int
    ) -> Dict[DateTime, int]:
        """
        Map each candidate start on ``day`` to the number of free participants.

        Starts nobody can attend are left out, so an empty mapping means no
        feasible meeting that day.
        """
        window = self.working_hours.window
        # exclusive bound of meeting starts that still end inside the window
        start_limit = window.end - duration_minutes + 1
        counts: Dict[DateTime, int] = {}

        if start_limit <= window.start:
            return counts

        events = self.collect_events(day, schedules, duration_minutes)
        available = 0
        cursor = window.start

        for event in events:
            if event.time > window.end:
                break

            if event.time > cursor:
                self._record(day, cursor, min(event.time, start_limit), available, counts)
                cursor = event.time

            available += 1 if event.kind is EventKind.START else -1

        self._record(day, cursor, start_limit, available, counts)

        logger.debug(
            "Swept %s: %d event(s), %d candidate start(s)",
            day,
            len(events),
            len(counts),
        )

        return counts

    def _record(
        self,
        day: date,
        segment_start: int,
        segment_end: int,
        available: int,
        counts: Dict[DateTime, int]
    ) -> None:
        """Record ``available`` for every grid minute in ``[segment_start, segment_end)``."""
        if available <= 0 or segment_start >= segment_end:
            return

        step = self.granularity_minutes
        origin = self.working_hours.start_minute
        offset = (segment_start - origin) % step
        first = segment_start if offset == 0 else segment_start + step - offset

        for minute in range(first, segment_end, step):
            moment = self._moment(day, minute)
            if moment is not None:
                counts[moment] = available

    def _moment(self, day: date, minute: int) -> Optional[DateTime]:
        """
        The local date-time of ``minute`` on ``day``, or None if the wall
        clock skips it (spring-forward gap).
        """
        moment = pendulum.datetime(
            day.year,
            day.month,
            day.day,
            minute // 60,
            minute % 60,
            tz=self.working_hours.timezone
        )
        # pendulum shifts nonexistent times forward onto a real, later minute
        if moment.hour * 60 + moment.minute != minute:
            return None
        return moment
