"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability_engine import AvailabilityEngine
from .exceptions import BusyDataError, CommonTimeError, InvalidRequestError
from .models import (
    AvailabilityResult,
    BestInterval,
    BusyInterval,
    DayAvailability,
    OutputMode,
    ParticipantSchedule,
    Slot,
    TimeInterval,
    WorkingHours,
)

__all__ = [
    "AvailabilityEngine",
    "AvailabilityResult",
    "BestInterval",
    "BusyDataError",
    "BusyInterval",
    "CommonTimeError",
    "DayAvailability",
    "InvalidRequestError",
    "OutputMode",
    "ParticipantSchedule",
    "Slot",
    "TimeInterval",
    "WorkingHours",
]
