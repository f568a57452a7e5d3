"""
Application services for finding the best common meeting time.

The service coordinates fetching busy intervals via a data source adapter
and delegates the actual availability calculation to the domain-level
``AvailabilityEngine``. This keeps the CLI thin and allows the data source
to be replaced by a simple stub in tests.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Protocol, Sequence

from ..domain.availability_engine import AvailabilityEngine, as_day
from ..domain.models import AvailabilityResult, BusyInterval, OutputMode

logger = logging.getLogger(__name__)


class BusyIntervalSource(Protocol):
    """Protocol describing the data source behaviour needed by the service."""

    async def get_busy_intervals(self, participant_id: str, days: Iterable[date]) -> List[BusyInterval]:
        """Return the participant's busy intervals intersecting the days."""


class AvailabilityFinderService:
    """
    Orchestrates busy-interval retrieval and the availability computation.
    """

    def __init__(
        self,
        source: BusyIntervalSource,
        engine: AvailabilityEngine,
    ) -> None:
        self._source = source
        self._engine = engine

    async def find_availability(
        self,
        *,
        candidate_days: Sequence[date],
        participant_selections: Mapping[str, Iterable[date]],
        duration_minutes: int,
        mode: OutputMode = OutputMode.INTERVALS,
    ) -> AvailabilityResult:
        """
        Retrieve busy data for every participant and compute availability.
        """
        selections = {
            participant: [as_day(day) for day in days]
            for participant, days in participant_selections.items()
        }

        busy_intervals = await self.fetch_busy_intervals(selections)

        result = self._engine.compute_availability(
            candidate_days=candidate_days,
            participant_selections=selections,
            busy_intervals=busy_intervals,
            duration_minutes=duration_minutes,
            mode=mode,
        )

        logger.info(
            "Best availability: %d of %d participant(s) on %d day(s)",
            result.max_count,
            len(selections),
            len(result.best_days()),
        )
        return result

    async def fetch_busy_intervals(
        self,
        participant_selections: Mapping[str, Sequence[date]],
    ) -> Dict[str, List[BusyInterval]]:
        """
        Fetch busy intervals of all participants concurrently.

        Every participant appears in the result, with an empty list when the
        source reports nothing for them.
        """
        participants = list(participant_selections)

        fetched = await asyncio.gather(*(
            self._source.get_busy_intervals(participant, participant_selections[participant])
            for participant in participants
        ))

        busy_intervals: Dict[str, List[BusyInterval]] = {}
        for participant, intervals in zip(participants, fetched):
            busy_intervals[participant] = list(intervals or [])

        logger.info(
            "Fetched %d busy interval(s) for %d participant(s)",
            sum(len(intervals) for intervals in busy_intervals.values()),
            len(participants),
        )
        return busy_intervals
