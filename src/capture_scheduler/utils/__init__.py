"""
Utility modules for the capture scheduler.
"""

from capture_scheduler.utils.logging_config import setup_logging, get_logger

__all__ = ["setup_logging", "get_logger"]
