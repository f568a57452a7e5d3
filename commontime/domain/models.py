"""
Domain models for schedule and availability calculations.

Times of day are stored as whole minutes since midnight so that the end of
a day (24:00) stays representable and interval arithmetic stays integer.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Dict, FrozenSet, List

from pendulum import DateTime

from .exceptions import InvalidRequestError

MINUTES_PER_DAY = 24 * 60


def minute_of_day(value: time) -> int:
    """Convert a time of day to minutes since midnight, dropping seconds."""
    return value.hour * 60 + value.minute


def require_minutes(value, what: str) -> int:
    """Reject anything but a whole number of minutes; bool is not a number here."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRequestError(f"{what} must be a whole number of minutes, got {value!r}")
    return value


def format_minute(minute: int) -> str:
    """Format minutes since midnight as HH:MM (24:00 for the end of day)."""
    return f"{minute // 60:02d}:{minute % 60:02d}"


@dataclass(frozen=True, order=True)
class TimeInterval:
    """
    Half-open interval ``[start, end)`` within a single day.

    Invariant: 0 <= start <= end <= 24:00.
    """
    start: int
    end: int

    def __post_init__(self):
        require_minutes(self.start, "Interval start")
        require_minutes(self.end, "Interval end")
        if not 0 <= self.start <= self.end <= MINUTES_PER_DAY:
            raise InvalidRequestError(
                f"Invalid time interval {self.start}-{self.end}: "
                f"expected 0 <= start <= end <= {MINUTES_PER_DAY}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.start >= self.end

    def __str__(self) -> str:
        return f"{format_minute(self.start)} - {format_minute(self.end)}"


@dataclass(frozen=True)
class BusyInterval:
    """
    A participant's existing commitment. May span several days.

    Invariant: end must not be before start. Zero-length intervals are
    accepted and simply block nothing.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidRequestError(
                f"Busy interval end {self.end} is before its start {self.start}"
            )


@dataclass(frozen=True)
class WorkingHours:
    """
    The daily window considered eligible for scheduling.

    Applies uniformly to every participant and every day of one computation.
    """
    start_minute: int = 9 * 60
    end_minute: int = 18 * 60
    timezone: str = "Europe/Berlin"

    def __post_init__(self):
        require_minutes(self.start_minute, "Working hours start")
        require_minutes(self.end_minute, "Working hours end")
        if not 0 <= self.start_minute < self.end_minute <= MINUTES_PER_DAY:
            raise InvalidRequestError(
                f"Working hours {format_minute(self.start_minute)} - "
                f"{format_minute(self.end_minute)} do not form a valid window"
            )

    @classmethod
    def from_hours(cls, start_hour: int, end_hour: int, timezone: str = "Europe/Berlin") -> "WorkingHours":
        return cls(start_minute=start_hour * 60, end_minute=end_hour * 60, timezone=timezone)

    @property
    def window(self) -> TimeInterval:
        return TimeInterval(start=self.start_minute, end=self.end_minute)

    def __str__(self) -> str:
        return str(self.window)


@dataclass
class ParticipantSchedule:
    """
    Free intervals of one participant, per selected day.

    Every selected day has an entry; an empty list means the participant
    has no interval long enough for the meeting that day.
    """
    participant_id: str
    selected_days: FrozenSet[date]
    availability: Dict[date, List[TimeInterval]] = field(default_factory=dict)

    def free_intervals(self, day: date) -> List[TimeInterval]:
        return self.availability.get(day, [])


class EventKind(int, Enum):
    """Sweep event kind. The ordering puts END before START at equal times."""
    END = 0
    START = 1


@dataclass(frozen=True, order=True)
class TimeEvent:
    """Sweep-line marker at a minute of the day."""
    time: int
    kind: EventKind


class OutputMode(str, Enum):
    """How much of the availability result the engine reduces."""
    COUNTS = "counts"
    SLOTS = "slots"
    INTERVALS = "intervals"


WEEKDAY_NAMES = {
    0: "Montag",
    1: "Dienstag",
    2: "Mittwoch",
    3: "Donnerstag",
    4: "Freitag",
    5: "Samstag",
    6: "Sonntag"
}


@dataclass(frozen=True)
class Slot:
    """
    A single meeting start with the participant count free for all of it.
    """
    start: DateTime
    duration_minutes: int
    available: int

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Wochentag, DD.MM.YYYY | HH:MM – HH:MM Uhr
        """
        weekday = WEEKDAY_NAMES[self.start.day_of_week]
        date_str = self.start.format("DD.MM.YYYY")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')} Uhr"

        return f"{weekday}, {date_str} | {time_str} ({self.available} Teilnehmer)"


@dataclass(frozen=True)
class BestInterval:
    """
    A maximal run of best meeting starts on one day.

    ``start`` and ``last_start`` are the first and last valid meeting starts;
    ``end`` is the last covered instant, ``last_start + duration``.
    """
    start: DateTime
    last_start: DateTime
    end: DateTime
    available: int

    def format_display(self) -> str:
        weekday = WEEKDAY_NAMES[self.start.day_of_week]
        date_str = self.start.format("DD.MM.YYYY")
        return (
            f"{weekday}, {date_str} | {self.start.format('HH:mm')} – {self.end.format('HH:mm')} Uhr "
            f"(letzter Beginn {self.last_start.format('HH:mm')}, {self.available} Teilnehmer)"
        )


@dataclass
class DayAvailability:
    """Availability of one candidate day."""
    day: date
    counts: Dict[DateTime, int] = field(default_factory=dict)
    max_count: int = 0
    best_moments: List[DateTime] = field(default_factory=list)
    best_intervals: List[BestInterval] = field(default_factory=list)

    def is_empty(self) -> bool:
        return self.max_count == 0


@dataclass
class AvailabilityResult:
    """
    Outcome of one availability computation, reported per candidate day.
    """
    duration_minutes: int
    mode: OutputMode
    days: Dict[date, DayAvailability] = field(default_factory=dict)

    @property
    def max_count(self) -> int:
        """Global maximum over all days (0 when nobody is ever free)."""
        return max((d.max_count for d in self.days.values()), default=0)

    def best_days(self) -> List[date]:
        """Days whose own maximum equals the global maximum."""
        best = self.max_count
        if best == 0:
            return []
        return sorted(day for day, availability in self.days.items() if availability.max_count == best)

    def best_slots(self) -> List[Slot]:
        """All meeting starts reaching the global maximum, in time order."""
        best = self.max_count
        if best == 0:
            return []

        slots: List[Slot] = []
        for day in self.best_days():
            availability = self.days[day]
            moments = availability.best_moments or sorted(
                moment for moment, count in availability.counts.items() if count == best
            )
            slots.extend(
                Slot(start=moment, duration_minutes=self.duration_minutes, available=best)
                for moment in moments
            )
        return slots
