"""
Busy-interval source backed by a local JSON file of calendar events.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pendulum
from pendulum import DateTime

from ..config import AppConfig
from ..domain.exceptions import BusyDataError
from ..domain.models import BusyInterval

logger = logging.getLogger(__name__)


class JsonBusyIntervalSource:
    """
    Loads busy intervals from a JSON file instead of a live calendar.

    The file holds a list of events of the form
    ``{"calendarId": "...", "start": "<ISO 8601>", "end": "<ISO 8601>"}``.
    Participants are mapped to calendar ids through the configured
    ``calendar_id``; without one, the participant id itself is used.
    """

    def __init__(self, data_file: Path, config: Optional[AppConfig] = None, timezone: str = "Europe/Berlin"):
        self.data_file = data_file
        self.config = config
        self.timezone = config.timezone if config else timezone
        self.calendar_events = self._load_calendar_data()

    def _load_calendar_data(self) -> List[Dict[str, Any]]:
        """Load calendar events from the JSON file."""
        if not self.data_file.exists():
            raise BusyDataError(f"Busy data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                events = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise BusyDataError(f"Could not read busy data from {self.data_file}: {exc}") from exc

        if not isinstance(events, list):
            raise BusyDataError(f"Busy data file {self.data_file} must contain a list of events")

        return events

    def _get_calendar_id(self, participant_id: str) -> str:
        """Map a participant to a calendar id using the config."""
        if self.config:
            participant = self.config.find_participant(participant_id)
            if participant and participant.calendar_id:
                return participant.calendar_id

        return participant_id

    async def get_busy_intervals(self, participant_id: str, days: Iterable[date]) -> List[BusyInterval]:
        """
        Return the participant's busy intervals intersecting any of the days.

        Malformed events are skipped with a warning.
        """
        calendar_id = self._get_calendar_id(participant_id)
        day_ranges = [self._day_range(day) for day in sorted(set(days))]
        busy: List[BusyInterval] = []

        for event in self.calendar_events:
            if not isinstance(event, dict) or event.get("calendarId") != calendar_id:
                continue

            try:
                interval = BusyInterval(
                    start=self._parse_datetime(event["start"]),
                    end=self._parse_datetime(event["end"])
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed event for %s: %s", calendar_id, exc)
                continue

            if any(interval.start < day_end and interval.end > day_start for day_start, day_end in day_ranges):
                busy.append(interval)

        logger.debug("Loaded %d busy interval(s) for %s", len(busy), participant_id)
        return busy

    def _parse_datetime(self, value: str) -> DateTime:
        parsed = pendulum.parse(value, tz=self.timezone)
        if not isinstance(parsed, DateTime):
            raise ValueError(f"Not a date-time: {value}")
        return parsed

    def _day_range(self, day: date) -> Tuple[DateTime, DateTime]:
        start = pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)
        return start, start.add(days=1)
