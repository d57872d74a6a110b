"""Configuration for capture scheduling sessions."""

from capture_scheduler.config.settings import (
    SchedulerSettings,
    get_settings,
    reset_settings,
    validate_scheduler_parameters,
)

__all__ = [
    "SchedulerSettings",
    "get_settings",
    "reset_settings",
    "validate_scheduler_parameters",
]
