"""
Tests for the availability engine.
"""

import pendulum
import pytest

from commontime.domain.availability_engine import AvailabilityEngine
from commontime.domain.exceptions import InvalidRequestError
from commontime.domain.models import BusyInterval, OutputMode, WorkingHours

from conftest import MONDAY, TUESDAY, TZ, WEDNESDAY, moment


def busy(start: str, end: str) -> BusyInterval:
    return BusyInterval(start=pendulum.parse(start, tz=TZ), end=pendulum.parse(end, tz=TZ))


class TestAvailabilityEngine:
    """Tests for AvailabilityEngine."""

    def test_single_participant_full_day(self, working_hours):
        """Free all day with a one hour meeting: every start from 09:00 to 17:00."""
        engine = AvailabilityEngine(working_hours)

        result = engine.compute_availability(
            candidate_days=[MONDAY],
            participant_selections={"a@example.com": [MONDAY]},
            duration_minutes=60
        )

        day = result.days[MONDAY]
        assert day.max_count == 1
        assert len(day.best_moments) == 481
        assert day.best_moments[0] == moment(MONDAY, "09:00")
        assert day.best_moments[-1] == moment(MONDAY, "17:00")
        assert len(day.best_intervals) == 1
        assert day.best_intervals[0].start == moment(MONDAY, "09:00")
        assert day.best_intervals[0].last_start == moment(MONDAY, "17:00")
        assert day.best_intervals[0].end == moment(MONDAY, "18:00")

    def test_two_participants_overlap(self, working_hours):
        """P1 free 09:00-12:00, P2 free 10:00-14:00: both attend 10:00 - 12:00."""
        engine = AvailabilityEngine(working_hours)

        result = engine.compute_availability(
            candidate_days=[MONDAY],
            participant_selections={"p1": [MONDAY], "p2": [MONDAY]},
            busy_intervals={
                "p1": [busy("2024-11-25 12:00", "2024-11-25 18:00")],
                "p2": [busy("2024-11-25 09:00", "2024-11-25 10:00"), busy("2024-11-25 14:00", "2024-11-25 18:00")],
            },
            duration_minutes=30
        )

        day = result.days[MONDAY]
        assert day.max_count == 2
        assert day.counts[moment(MONDAY, "09:30")] == 1
        assert day.counts[moment(MONDAY, "13:00")] == 1
        assert len(day.best_intervals) == 1
        best = day.best_intervals[0]
        assert (best.start, best.last_start, best.end) == (
            moment(MONDAY, "10:00"),
            moment(MONDAY, "11:30"),
            moment(MONDAY, "12:00"),
        )

    def test_disjoint_windows_shorter_than_meeting(self, working_hours):
        """Nobody can host a five hour meeting: the day is reported but empty."""
        engine = AvailabilityEngine(working_hours)

        result = engine.compute_availability(
            candidate_days=[MONDAY],
            participant_selections={"p1": [MONDAY], "p2": [MONDAY]},
            busy_intervals={
                "p1": [busy("2024-11-25 12:00", "2024-11-25 18:00")],
                "p2": [busy("2024-11-25 09:00", "2024-11-25 14:00")],
            },
            duration_minutes=300
        )

        assert MONDAY in result.days
        assert result.days[MONDAY].max_count == 0
        assert result.days[MONDAY].best_moments == []
        assert result.days[MONDAY].best_intervals == []
        assert result.max_count == 0

    def test_per_participant_day_selection(self, working_hours):
        engine = AvailabilityEngine(working_hours)

        result = engine.compute_availability(
            candidate_days=[MONDAY, TUESDAY, WEDNESDAY],
            participant_selections={"p1": [MONDAY, TUESDAY], "p2": [TUESDAY]},
            duration_minutes=30,
            mode=OutputMode.SLOTS
        )

        assert list(result.days) == [MONDAY, TUESDAY, WEDNESDAY]
        assert result.days[MONDAY].max_count == 1
        assert result.days[TUESDAY].max_count == 2
        assert result.days[WEDNESDAY].max_count == 0
        assert result.max_count == 2
        assert result.best_days() == [TUESDAY]
        slots = result.best_slots()
        assert slots[0].start == moment(TUESDAY, "09:00")
        assert slots[-1].start == moment(TUESDAY, "17:30")

    def test_candidate_days_are_deduplicated(self, working_hours):
        result = AvailabilityEngine(working_hours).compute_availability(
            candidate_days=[MONDAY, MONDAY, pendulum.datetime(2024, 11, 25, 12, tz=TZ)],
            participant_selections={},
            duration_minutes=30
        )

        assert list(result.days) == [MONDAY]

    def test_granularity_is_configurable(self, working_hours):
        result = AvailabilityEngine(working_hours, granularity_minutes=15).compute_availability(
            candidate_days=[MONDAY],
            participant_selections={"p1": [MONDAY]},
            duration_minutes=60
        )

        day = result.days[MONDAY]
        assert len(day.best_moments) == 33
        assert len(day.best_intervals) == 1
        assert day.best_intervals[0].end == moment(MONDAY, "18:00")

    def test_working_hours_are_per_engine(self):
        selections = {"p1": [MONDAY]}
        morning = AvailabilityEngine(WorkingHours.from_hours(8, 12, timezone=TZ))
        evening = AvailabilityEngine(WorkingHours.from_hours(16, 20, timezone=TZ))

        morning_day = morning.compute_availability([MONDAY], selections, duration_minutes=60).days[MONDAY]
        evening_day = evening.compute_availability([MONDAY], selections, duration_minutes=60).days[MONDAY]

        assert morning_day.best_intervals[0].start == moment(MONDAY, "08:00")
        assert evening_day.best_intervals[0].end == moment(MONDAY, "20:00")

    def test_additional_busy_time_never_increases_counts(self, working_hours):
        engine = AvailabilityEngine(working_hours)
        selections = {"p1": [MONDAY], "p2": [MONDAY]}
        base_busy = {"p1": [busy("2024-11-25 13:00", "2024-11-25 14:00")]}
        more_busy = {
            "p1": [busy("2024-11-25 13:00", "2024-11-25 14:00")],
            "p2": [busy("2024-11-25 10:15", "2024-11-25 11:45")],
        }

        before = engine.compute_availability([MONDAY], selections, base_busy, 45, OutputMode.COUNTS)
        after = engine.compute_availability([MONDAY], selections, more_busy, 45, OutputMode.COUNTS)

        before_counts = before.days[MONDAY].counts
        after_counts = after.days[MONDAY].counts
        assert all(count <= before_counts.get(start, 0) for start, count in after_counts.items())
        assert after_counts[moment(MONDAY, "10:00")] == 1

    def test_selected_day_outside_candidates_raises_error(self, working_hours):
        with pytest.raises(InvalidRequestError, match="not candidate days"):
            AvailabilityEngine(working_hours).compute_availability(
                candidate_days=[MONDAY],
                participant_selections={"p1": [MONDAY, TUESDAY]},
                duration_minutes=30
            )

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_raises_error(self, working_hours, duration):
        with pytest.raises(InvalidRequestError):
            AvailabilityEngine(working_hours).compute_availability(
                candidate_days=[MONDAY],
                participant_selections={"p1": [MONDAY]},
                duration_minutes=duration
            )

    def test_non_positive_granularity_raises_error(self, working_hours):
        with pytest.raises(InvalidRequestError):
            AvailabilityEngine(working_hours, granularity_minutes=0)

    @pytest.mark.parametrize("duration", [30.5, 30.0, True, "30"])
    def test_non_integer_duration_raises_error(self, working_hours, duration):
        """Fractional or boolean durations are caller errors, not type errors."""
        with pytest.raises(InvalidRequestError, match="whole number of minutes"):
            AvailabilityEngine(working_hours).compute_availability(
                candidate_days=[MONDAY],
                participant_selections={"p1": [MONDAY]},
                duration_minutes=duration
            )

    @pytest.mark.parametrize("granularity", [0.5, 15.0, True])
    def test_non_integer_granularity_raises_error(self, working_hours, granularity):
        with pytest.raises(InvalidRequestError, match="whole number of minutes"):
            AvailabilityEngine(working_hours, granularity_minutes=granularity)

    def test_spring_forward_day_skips_missing_hour(self):
        """A participant free all of 2024-03-31 has no starts between 02:00 and 02:59."""
        day = pendulum.date(2024, 3, 31)
        engine = AvailabilityEngine(WorkingHours(start_minute=0, end_minute=24 * 60, timezone=TZ))

        result = engine.compute_availability(
            candidate_days=[day],
            participant_selections={"p1": [day]},
            duration_minutes=60,
            mode=OutputMode.SLOTS
        )

        best = result.days[day].best_moments
        assert result.days[day].max_count == 1
        assert len(best) == 1321
        assert all(start.hour != 2 for start in best)
        assert best[0] == moment(day, "00:00")
        assert best[-1] == moment(day, "23:00")
