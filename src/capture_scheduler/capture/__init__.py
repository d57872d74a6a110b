"""Capture scheduling: condition windows, decision rule and periodic timer."""

from capture_scheduler.capture.decision import (
    WindowEvaluation,
    evaluate_window,
    longest_positive_run,
    required_run_length,
)
from capture_scheduler.capture.scheduler import (
    CaptureProgress,
    CaptureScheduler,
    CaptureSchedulerDelegate,
)
from capture_scheduler.capture.timer import RepeatingTimer, TimerFactory, TimerHandle

__all__ = [
    "CaptureProgress",
    "CaptureScheduler",
    "CaptureSchedulerDelegate",
    "RepeatingTimer",
    "TimerFactory",
    "TimerHandle",
    "WindowEvaluation",
    "evaluate_window",
    "longest_positive_run",
    "required_run_length",
]
