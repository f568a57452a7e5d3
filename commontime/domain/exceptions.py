"""
Domain-specific exception hierarchy for the availability engine.
"""


class CommonTimeError(Exception):
    """Base class for all application-level errors."""


class InvalidRequestError(CommonTimeError, ValueError):
    """Raised when a caller passes input the engine cannot work with."""


class BusyDataError(CommonTimeError):
    """Raised when busy intervals cannot be fetched or parsed."""
