"""
Core business logic for finding the meeting time most participants can attend.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Every call
works on the data it is given and keeps no state between calls.
"""

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pendulum

from .availability_sweep import AvailabilitySweep
from .exceptions import InvalidRequestError
from .models import (
    AvailabilityResult,
    BusyInterval,
    OutputMode,
    ParticipantSchedule,
    WorkingHours,
    require_minutes,
)
from .schedule_builder import ScheduleBuilder
from .slot_selector import SlotSelector

logger = logging.getLogger(__name__)


def as_day(value: date) -> date:
    """Normalise a date or date-time to a calendar day."""
    if isinstance(value, datetime):
        value = value.date()
    return pendulum.date(value.year, value.month, value.day)


class AvailabilityEngine:
    """
    Computes, per candidate day, when the most participants are free.

    Algorithm:
    1. Build every participant's free intervals on their selected days
    2. Sweep each candidate day, counting free participants per meeting start
    3. Keep the starts reaching the day's maximum, optionally as intervals

    The working hours and the enumeration granularity are part of the
    engine instance, so callers with different policies use different
    engines.
    """

    def __init__(self, working_hours: WorkingHours, granularity_minutes: int = 1):
        require_minutes(granularity_minutes, "Granularity")
        if granularity_minutes <= 0:
            raise InvalidRequestError(f"Granularity must be positive, got {granularity_minutes}")

        self.working_hours = working_hours
        self.granularity_minutes = granularity_minutes
        self.schedule_builder = ScheduleBuilder(working_hours)
        self.sweep = AvailabilitySweep(working_hours, granularity_minutes)
        self.selector = SlotSelector(granularity_minutes)

    def compute_availability(
        self,
        candidate_days: Iterable[date],
        participant_selections: Mapping[str, Iterable[date]],
        busy_intervals: Optional[Mapping[str, Sequence[BusyInterval]]] = None,
        duration_minutes: int = 30,
        mode: OutputMode = OutputMode.INTERVALS
    ) -> AvailabilityResult:
        """
        Find the best meeting times across all candidate days.

        Args:
            candidate_days: Days the meeting may take place on
            participant_selections: Participant -> days they can attend
            busy_intervals: Participant -> existing commitments
            duration_minutes: Required meeting length
            mode: How far to reduce the per-day counts

        Returns:
            AvailabilityResult with one entry per candidate day

        Raises:
            InvalidRequestError: If the duration is not positive or a
                participant selected a day that is not a candidate
        """
        days, selections = self._validate(candidate_days, participant_selections, duration_minutes)
        busy_intervals = busy_intervals or {}

        unknown = set(busy_intervals) - set(selections)
        if unknown:
            logger.debug("Ignoring busy data of non-participants: %s", ", ".join(sorted(unknown)))

        schedules = self.build_schedules(selections, busy_intervals, duration_minutes)

        result = AvailabilityResult(duration_minutes=duration_minutes, mode=mode)
        for day in days:
            counts = self.sweep.count_day(day, schedules, duration_minutes)
            result.days[day] = self.selector.select(day, counts, duration_minutes, mode)

        logger.debug(
            "Computed availability for %d participant(s) over %d day(s), best count %d",
            len(schedules),
            len(days),
            result.max_count,
        )

        return result

    def build_schedules(
        self,
        participant_selections: Mapping[str, Iterable[date]],
        busy_intervals: Mapping[str, Sequence[BusyInterval]],
        duration_minutes: int
    ) -> List[ParticipantSchedule]:
        """Build the free-interval schedule of every participant."""
        return [
            self.schedule_builder.build(
                participant_id=participant,
                selected_days=[as_day(day) for day in selected],
                busy_intervals=busy_intervals.get(participant, []),
                duration_minutes=duration_minutes
            )
            for participant, selected in participant_selections.items()
        ]

    def _validate(
        self,
        candidate_days: Iterable[date],
        participant_selections: Mapping[str, Iterable[date]],
        duration_minutes: int
    ) -> Tuple[List[date], Dict[str, List[date]]]:
        """Check caller input; return the candidate days in order and the normalised selections."""
        require_minutes(duration_minutes, "Meeting duration")
        if duration_minutes <= 0:
            raise InvalidRequestError(f"Meeting duration must be positive, got {duration_minutes}")

        days: List[date] = []
        for value in candidate_days:
            day = as_day(value)
            if day not in days:
                days.append(day)

        allowed = set(days)
        selections: Dict[str, List[date]] = {}
        for participant, selected in participant_selections.items():
            selections[participant] = [as_day(day) for day in selected]
            outside = sorted(set(selections[participant]) - allowed)
            if outside:
                missing = ", ".join(day.isoformat() for day in outside)
                raise InvalidRequestError(
                    f"Participant '{participant}' selected day(s) {missing} "
                    f"which are not candidate days of the meeting"
                )

        return days, selections
