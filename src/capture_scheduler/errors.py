"""
Exceptions raised by the capture scheduler.
"""


class CaptureSchedulerError(Exception):
    """Base exception for the capture scheduler package."""


class InvalidConfiguration(CaptureSchedulerError, ValueError):
    """Raised when scheduler parameters are outside their accepted range."""
