"""
Centralized logging configuration for the capture scheduler.

Provides consistent logging across all modules and UTF-8 log files.
"""

import logging
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    log_file: Optional[str] = None,
    level: Union[int, str] = logging.INFO,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging for applications embedding the capture scheduler.

    Args:
        log_file: Path to log file. If None, only console output is used.
        level: Logging level, as a number or a name such as "DEBUG".
        log_format: Custom format string. If None, uses default format.

    Returns:
        Configured root logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if log_format is None:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = []

    # File handler with UTF-8 encoding
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format))
    handlers.append(console_handler)

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=handlers,
        force=True
    )

    # Camera and vision stacks that usually feed the scheduler are chatty
    noisy_loggers = [
        "PIL",
        "matplotlib",
        "urllib3",
    ]
    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return logging.getLogger()


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
