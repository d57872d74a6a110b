"""
Capture Scheduler

Converts a noisy stream of per-frame quality conditions from a live camera
or sensor feed into a bounded number of debounced capture events.
"""

from capture_scheduler.capture import CaptureProgress, CaptureScheduler, CaptureSchedulerDelegate
from capture_scheduler.config import SchedulerSettings, get_settings
from capture_scheduler.errors import CaptureSchedulerError, InvalidConfiguration

__version__ = "1.0.0"
__all__ = [
    "CaptureProgress",
    "CaptureScheduler",
    "CaptureSchedulerDelegate",
    "CaptureSchedulerError",
    "InvalidConfiguration",
    "SchedulerSettings",
    "get_settings",
]
