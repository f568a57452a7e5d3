"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_finder import AvailabilityFinderService, BusyIntervalSource

__all__ = ["AvailabilityFinderService", "BusyIntervalSource"]
