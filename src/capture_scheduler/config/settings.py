"""
Configuration settings for the capture scheduler.

Supports loading from environment variables with fallback defaults.
Uses python-dotenv for .env file support.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from capture_scheduler.errors import InvalidConfiguration
from capture_scheduler.utils.logging_config import get_logger

load_dotenv()

logger = get_logger(__name__)

DEFAULT_TIME_INTERVAL = 0.75
DEFAULT_MIN_POSITIVE_FRACTION = 0.8


def _get_env_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.getenv(key)
    return float(value) if value else default


def _get_env_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.getenv(key)
    return int(value) if value else default


def _get_env_optional_str(key: str) -> Optional[str]:
    """Get optional string from environment variable."""
    value = os.getenv(key)
    if value is None or value.strip() == "" or value.lower() == "none":
        return None
    return value


def validate_scheduler_parameters(
    required_captures: int,
    time_interval: float,
    minimal_positive_condition_fraction: float
) -> None:
    """
    Check the three scheduler parameters against their accepted ranges.

    Raises:
        InvalidConfiguration: If any parameter is out of range.
    """
    if required_captures < 0:
        raise InvalidConfiguration(
            f"required_captures must be >= 0, got {required_captures}"
        )

    if not time_interval > 0:
        raise InvalidConfiguration(
            f"time_interval must be > 0, got {time_interval}"
        )

    if not 0 <= minimal_positive_condition_fraction <= 1:
        raise InvalidConfiguration(
            f"minimal_positive_condition_fraction must be between 0 and 1, "
            f"got {minimal_positive_condition_fraction}"
        )


@dataclass
class SchedulerSettings:
    """
    Configuration settings for a capture scheduling session.

    All settings can be overridden via environment variables.

    Attributes:
        required_captures: Number of capture events before the session ends.
        time_interval: Seconds between evaluations of the condition window.
        minimal_positive_condition_fraction: Fraction of the window that must
            form one contiguous positive run for a capture to fire.
        log_level: Logging level name used by the bundled tools.
        log_file: Optional log file path used by the bundled tools.
    """

    required_captures: int = field(
        default_factory=lambda: _get_env_int("CAPTURE_REQUIRED_CAPTURES", 3)
    )
    time_interval: float = field(
        default_factory=lambda: _get_env_float("CAPTURE_TIME_INTERVAL", DEFAULT_TIME_INTERVAL)
    )
    minimal_positive_condition_fraction: float = field(
        default_factory=lambda: _get_env_float(
            "CAPTURE_MIN_POSITIVE_FRACTION", DEFAULT_MIN_POSITIVE_FRACTION
        )
    )

    log_level: str = field(
        default_factory=lambda: os.getenv("CAPTURE_LOG_LEVEL", "INFO")
    )
    log_file: Optional[str] = field(
        default_factory=lambda: _get_env_optional_str("CAPTURE_LOG_FILE")
    )

    @classmethod
    def from_env(cls) -> "SchedulerSettings":
        """
        Create settings instance from environment variables.

        Returns:
            SchedulerSettings instance with values from environment.
        """
        return cls()

    def validate(self) -> bool:
        """
        Validate all settings.

        Returns:
            True if all settings are valid.

        Raises:
            InvalidConfiguration: If any setting is invalid.
        """
        validate_scheduler_parameters(
            self.required_captures,
            self.time_interval,
            self.minimal_positive_condition_fraction,
        )
        return True

    def scheduler_kwargs(self) -> Dict[str, Any]:
        """Constructor arguments for a CaptureScheduler."""
        return {
            "required_captures": self.required_captures,
            "time_interval": self.time_interval,
            "minimal_positive_condition_fraction": self.minimal_positive_condition_fraction,
        }


# Global settings instance (lazy loaded)
_settings: Optional[SchedulerSettings] = None


def get_settings() -> SchedulerSettings:
    """
    Get the global settings instance.

    Creates settings on first call, returns cached instance thereafter.

    Returns:
        Global SchedulerSettings instance.
    """
    global _settings
    if _settings is None:
        _settings = SchedulerSettings.from_env()
        logger.debug(f"Loaded scheduler settings: {_settings}")
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None
