#!/usr/bin/env python3
"""
Simulate a capture session against a synthetic condition stream.

Feeds a CaptureScheduler with a Bernoulli signal (each report is positive with
probability ``--positive-rate``) at ``--report-hz`` reports per second, the way
a camera loop would report per-frame quality checks, and prints every capture
the scheduler initiates.

Usage:
    capture-simulate                                  # Use settings from environment
    capture-simulate --required-captures 5 --positive-rate 0.9
    capture-simulate --interval 0.2 --fraction 0.6 --seed 7 --timeout 10
"""

import argparse
import sys
import time
from dataclasses import replace
from typing import Callable, List, Optional

import numpy as np

from capture_scheduler.capture import CaptureProgress, CaptureScheduler
from capture_scheduler.config import get_settings
from capture_scheduler.errors import InvalidConfiguration
from capture_scheduler.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


class PrintingDelegate:
    """Delegate printing each initiated capture and keeping a history."""

    def __init__(self) -> None:
        self.captures: List[CaptureProgress] = []

    def on_capture_initiated(
        self,
        scheduler: CaptureScheduler,
        progress: CaptureProgress
    ) -> None:
        self.captures.append(progress)
        evaluation = scheduler.last_evaluation
        detail = ""
        if evaluation is not None:
            detail = (
                f" (run {evaluation.longest_run}/{evaluation.sample_count} samples, "
                f"{evaluation.positive_fraction:.0%} positive)"
            )
        print(f"Capture {progress.completed}/{progress.total}{detail}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Simulate a debounced capture session",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--required-captures", "-n",
        type=int,
        help="Capture events required (default from CAPTURE_REQUIRED_CAPTURES)"
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between evaluations (default from CAPTURE_TIME_INTERVAL)"
    )
    parser.add_argument(
        "--fraction",
        type=float,
        help="Minimal positive condition fraction (default from CAPTURE_MIN_POSITIVE_FRACTION)"
    )
    parser.add_argument(
        "--positive-rate",
        type=float,
        default=0.85,
        help="Probability that a reported condition is positive"
    )
    parser.add_argument(
        "--report-hz",
        type=float,
        default=30.0,
        help="Condition reports per second"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Give up after this many seconds"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for a reproducible signal"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every evaluation"
    )
    return parser.parse_args(argv)


def run_session(
    scheduler: CaptureScheduler,
    rng: np.random.Generator,
    positive_rate: float,
    report_hz: float,
    timeout: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic
) -> bool:
    """
    Report synthetic conditions until the scheduler completes or time runs out.

    Returns:
        True if all required captures were initiated
    """
    period = 1.0 / report_hz
    deadline = clock() + timeout
    reports = 0

    while not scheduler.is_completed and clock() < deadline:
        scheduler.report_condition(bool(rng.random() < positive_rate))
        reports += 1
        sleep(period)

    logger.info(f"Session ended after {reports} reports: {scheduler.get_stats()}")
    return scheduler.is_completed


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)

    settings = get_settings()
    overrides = {}
    if args.required_captures is not None:
        overrides["required_captures"] = args.required_captures
    if args.interval is not None:
        overrides["time_interval"] = args.interval
    if args.fraction is not None:
        overrides["minimal_positive_condition_fraction"] = args.fraction
    if args.debug:
        overrides["log_level"] = "DEBUG"
    settings = replace(settings, **overrides)

    try:
        settings.validate()
    except InvalidConfiguration as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    if args.report_hz <= 0:
        print(f"--report-hz must be > 0, got {args.report_hz}", file=sys.stderr)
        return 2

    setup_logging(log_file=settings.log_file, level=settings.log_level)

    delegate = PrintingDelegate()
    with CaptureScheduler.from_settings(settings, delegate=delegate) as scheduler:
        completed = run_session(
            scheduler,
            np.random.default_rng(args.seed),
            positive_rate=args.positive_rate,
            report_hz=args.report_hz,
            timeout=args.timeout,
        )

    if completed:
        print(f"Session complete: {len(delegate.captures)} captures")
        return 0

    print(
        f"Timed out after {args.timeout}s with "
        f"{len(delegate.captures)}/{settings.required_captures} captures"
    )
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
