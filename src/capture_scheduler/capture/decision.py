"""
Decision rule for a window of condition samples.

A window is satisfied when it contains one contiguous run of positive
conditions at least ``floor(len(window) * fraction)`` long. Scattered
positives do not count: a window that is 80% positive but fragmented into
short runs will not fire at a 0.8 threshold.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class WindowEvaluation:
    """
    Outcome of evaluating one window of samples.

    Attributes:
        sample_count: Number of samples in the window
        positive_count: Number of positive samples
        required_run: Run length needed for the window to fire
        longest_run: Longest run of consecutive positives found
        satisfied: Whether the window fires a capture
    """
    sample_count: int
    positive_count: int
    required_run: int
    longest_run: int
    satisfied: bool

    @property
    def positive_fraction(self) -> float:
        """Share of positive samples, 0.0 for an empty window."""
        if self.sample_count == 0:
            return 0.0
        return self.positive_count / self.sample_count


def required_run_length(sample_count: int, fraction: float) -> int:
    """Run length a window of ``sample_count`` samples must contain."""
    return int(np.floor(sample_count * fraction))


def longest_positive_run(samples: Sequence[bool]) -> int:
    """
    Length of the longest run of consecutive True values.

    Run boundaries are located from the edges of the zero-padded signal, so
    the whole window is scanned in one vectorized pass.
    """
    values = np.asarray(samples, dtype=bool)
    if values.size == 0:
        return 0

    padded = np.concatenate(([0], values.astype(np.int8), [0]))
    edges = np.diff(padded)
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)
    if starts.size == 0:
        return 0
    return int((ends - starts).max())


def evaluate_window(samples: Sequence[bool], fraction: float) -> WindowEvaluation:
    """
    Evaluate a window of samples against the minimal positive fraction.

    A required run of 0 is always reached, so tiny windows (or an empty one)
    fire as soon as ``floor(count * fraction)`` drops to zero.

    Args:
        samples: Conditions collected since the previous evaluation
        fraction: Minimal positive condition fraction in [0, 1]

    Returns:
        WindowEvaluation describing the window
    """
    values = np.asarray(samples, dtype=bool)
    sample_count = int(values.size)
    required_run = required_run_length(sample_count, fraction)
    longest_run = longest_positive_run(values)

    return WindowEvaluation(
        sample_count=sample_count,
        positive_count=int(np.count_nonzero(values)),
        required_run=required_run,
        longest_run=longest_run,
        satisfied=longest_run >= required_run,
    )
