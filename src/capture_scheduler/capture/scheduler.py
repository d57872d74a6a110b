"""
Debounced capture scheduler.

Turns a noisy, high-frequency boolean signal ("is the current frame good
enough?") into a small number of rate-limited capture events:

1. The caller reports a condition for every frame it assesses
2. The first positive condition opens a sampling window and starts a timer
3. Every tick, the window is evaluated and cleared; if it holds a long enough
   run of positives, a capture fires and progress advances
4. Once the required number of captures is reached the scheduler invalidates
   itself and ignores further conditions until reset
"""

import functools
import inspect
import threading
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

from capture_scheduler.capture.decision import WindowEvaluation, evaluate_window
from capture_scheduler.capture.timer import RepeatingTimer, TimerFactory, TimerHandle
from capture_scheduler.config.settings import (
    DEFAULT_MIN_POSITIVE_FRACTION,
    DEFAULT_TIME_INTERVAL,
    SchedulerSettings,
    get_settings,
    validate_scheduler_parameters,
)
from capture_scheduler.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CaptureProgress:
    """
    Snapshot of capture progress.

    Attributes:
        completed: Capture events fired so far
        total: Capture events required for the session
    """
    completed: int
    total: int

    @property
    def fraction_completed(self) -> float:
        """Completed share in [0, 1]; an empty session counts as done."""
        if self.total <= 0:
            return 1.0
        return min(1.0, self.completed / self.total)

    @property
    def is_finished(self) -> bool:
        return self.completed >= self.total

    def as_tuple(self) -> Tuple[int, int]:
        return (self.completed, self.total)


class CaptureSchedulerDelegate(Protocol):
    """Receives a message every time the scheduler initiates a capture."""

    def on_capture_initiated(
        self,
        scheduler: "CaptureScheduler",
        progress: CaptureProgress
    ) -> None: ...


CaptureCallback = Callable[["CaptureScheduler", CaptureProgress], None]
DelegateLike = Union[CaptureSchedulerDelegate, CaptureCallback]


def _weak_delegate(delegate: Optional[DelegateLike]) -> Optional[weakref.ReferenceType]:
    """Non-owning reference to a delegate object, bound method or function."""
    if delegate is None:
        return None
    if inspect.ismethod(delegate):
        return weakref.WeakMethod(delegate)
    return weakref.ref(delegate)


def _timer_tick(scheduler_ref: "weakref.ReferenceType[CaptureScheduler]", generation: int) -> bool:
    # The timer must not keep its scheduler alive
    scheduler = scheduler_ref()
    if scheduler is None:
        return False
    return scheduler._on_timer_tick(generation)


class CaptureScheduler:
    """
    Fires capture events when a stream of conditions is predominantly positive.

    All state is guarded by one re-entrant lock, taken both by
    ``report_condition`` (any producer thread) and by the timer tick, so
    conditions and evaluations never interleave. The delegate is notified on
    the timer's thread while the lock is held; it may call back into the
    scheduler but should hand slow work off elsewhere.

    Example:
        >>> scheduler = CaptureScheduler(required_captures=3)
        >>> scheduler.delegate = app   # has on_capture_initiated(scheduler, progress)
        >>> for frame in camera:
        ...     scheduler.report_condition(is_sharp(frame))
        ...     if scheduler.is_completed:
        ...         break
    """

    def __init__(
        self,
        required_captures: int,
        time_interval: float = DEFAULT_TIME_INTERVAL,
        minimal_positive_condition_fraction: float = DEFAULT_MIN_POSITIVE_FRACTION,
        *,
        delegate: Optional[DelegateLike] = None,
        timer_factory: Optional[TimerFactory] = None
    ):
        """
        Initialize the capture scheduler.

        Args:
            required_captures: Number of capture events to schedule
            time_interval: Seconds between evaluations of the collected
                conditions; also the minimal spacing between capture events
            minimal_positive_condition_fraction: Fraction of a window that must
                form one contiguous run of positives to initiate a capture
            delegate: Object with ``on_capture_initiated`` or a callable taking
                ``(scheduler, progress)``; held through a weak reference
            timer_factory: Creates the repeating timer; defaults to RepeatingTimer

        Raises:
            InvalidConfiguration: If a parameter is out of range
        """
        validate_scheduler_parameters(
            required_captures, time_interval, minimal_positive_condition_fraction
        )

        self._required_captures = int(required_captures)
        self._time_interval = float(time_interval)
        self._minimal_positive_condition_fraction = float(minimal_positive_condition_fraction)
        self._timer_factory: TimerFactory = timer_factory or RepeatingTimer

        self._lock = threading.RLock()
        self._delegate_ref = _weak_delegate(delegate)

        self._timer: Optional[TimerHandle] = None
        self._timer_generation = 0
        self._init_session_state()

        logger.info(
            f"CaptureScheduler initialized: required_captures={self._required_captures}, "
            f"time_interval={self._time_interval}s, "
            f"min_positive_fraction={self._minimal_positive_condition_fraction}"
        )

    def _init_session_state(self) -> None:
        self._completed = 0
        self._conditions: List[bool] = []
        self._invalidated = False
        self._last_evaluation: Optional[WindowEvaluation] = None
        self._ticks_evaluated = 0
        self._ticks_fired = 0

    @classmethod
    def from_settings(
        cls,
        settings: Optional[SchedulerSettings] = None,
        **kwargs: Any
    ) -> "CaptureScheduler":
        """
        Create a scheduler from settings (the global settings when omitted).

        Extra keyword arguments (``delegate``, ``timer_factory``) are passed
        to the constructor.
        """
        settings = settings or get_settings()
        return cls(**settings.scheduler_kwargs(), **kwargs)

    # Configuration

    @property
    def required_captures(self) -> int:
        return self._required_captures

    @property
    def time_interval(self) -> float:
        return self._time_interval

    @property
    def minimal_positive_condition_fraction(self) -> float:
        return self._minimal_positive_condition_fraction

    # Delegate

    @property
    def delegate(self) -> Optional[DelegateLike]:
        """The current delegate, or None if unset or already collected."""
        if self._delegate_ref is None:
            return None
        return self._delegate_ref()

    @delegate.setter
    def delegate(self, delegate: Optional[DelegateLike]) -> None:
        self._delegate_ref = _weak_delegate(delegate)

    # Observable state

    @property
    def progress(self) -> CaptureProgress:
        with self._lock:
            return CaptureProgress(self._completed, self._required_captures)

    @property
    def is_completed(self) -> bool:
        with self._lock:
            return self._completed >= self._required_captures

    @property
    def is_invalidated(self) -> bool:
        with self._lock:
            return self._invalidated

    @property
    def is_running(self) -> bool:
        """Whether a timer is currently scheduled."""
        with self._lock:
            return self._timer_is_active()

    @property
    def pending_samples(self) -> int:
        """Conditions collected since the last evaluation."""
        with self._lock:
            return len(self._conditions)

    @property
    def last_evaluation(self) -> Optional[WindowEvaluation]:
        with self._lock:
            return self._last_evaluation

    # Lifecycle

    def reset(self) -> None:
        """Reset the session: stop the timer and clear progress and conditions."""
        with self._lock:
            self._cancel_timer()
            self._init_session_state()
        logger.debug("CaptureScheduler reset")

    def invalidate(self) -> None:
        """Stop the scheduler from ever firing a capture event again (until reset)."""
        with self._lock:
            self._invalidated = True
            self._cancel_timer()
            self._conditions = []

    def start(self) -> None:
        """Start the evaluation timer unless it is already running."""
        with self._lock:
            if self._completed >= self._required_captures:
                logger.warning(
                    "start() ignored: all required captures are already completed"
                )
                return

            self._invalidated = False
            if self._timer_is_active():
                return

            self._timer_generation += 1
            callback = functools.partial(
                _timer_tick, weakref.ref(self), self._timer_generation
            )
            self._timer = self._timer_factory(self._time_interval, callback)
            logger.info(f"Capture window opened, evaluating every {self._time_interval}s")

    def report_condition(self, condition: bool) -> None:
        """
        Inform the scheduler that a new condition (positive or negative) occurred.

        A negative condition never opens a window on its own; once a window
        is open every condition is collected.
        """
        condition = bool(condition)
        with self._lock:
            if self._completed >= self._required_captures or self._invalidated:
                logger.debug(f"Condition {condition} dropped: scheduler inactive")
                return

            if self._timer_is_active():
                self._conditions.append(condition)
                return

            if condition:
                self.start()
                self._conditions.append(condition)

    def evaluate_tick(self) -> Optional[WindowEvaluation]:
        """
        Evaluate the conditions collected since the previous tick.

        Called by the timer. The collected conditions are discarded whatever
        the outcome.

        Returns:
            The window evaluation, or None if the scheduler is not sampling
        """
        with self._lock:
            if (
                self._invalidated
                or self._completed >= self._required_captures
                or not self._timer_is_active()
            ):
                return None

            try:
                evaluation = evaluate_window(
                    self._conditions, self._minimal_positive_condition_fraction
                )
                self._last_evaluation = evaluation
                self._ticks_evaluated += 1

                logger.debug(
                    f"Evaluated {evaluation.sample_count} conditions: "
                    f"required run {evaluation.required_run}, "
                    f"longest run {evaluation.longest_run}, "
                    f"fired={evaluation.satisfied}"
                )

                if evaluation.satisfied:
                    self._completed += 1
                    self._ticks_fired += 1
                    progress = CaptureProgress(self._completed, self._required_captures)

                    if progress.is_finished:
                        logger.info(f"All {self._required_captures} captures completed")
                        self.invalidate()

                    self._notify_delegate(progress)

                return evaluation
            finally:
                self._conditions = []

    # Stats

    def get_stats(self) -> Dict[str, Any]:
        """Get scheduler statistics."""
        with self._lock:
            return {
                "required_captures": self._required_captures,
                "completed_captures": self._completed,
                "pending_samples": len(self._conditions),
                "running": self._timer_is_active(),
                "invalidated": self._invalidated,
                "ticks_evaluated": self._ticks_evaluated,
                "ticks_fired": self._ticks_fired,
            }

    # Internals

    def _notify_delegate(self, progress: CaptureProgress) -> None:
        delegate = self.delegate
        if delegate is None:
            logger.debug(f"Capture {progress.completed}/{progress.total} initiated, no delegate")
            return

        handler = getattr(delegate, "on_capture_initiated", None)
        if handler is not None:
            handler(self, progress)
        else:
            delegate(self, progress)

    def _on_timer_tick(self, generation: int) -> bool:
        with self._lock:
            if generation != self._timer_generation or self._timer is None:
                return False
            self.evaluate_tick()
            return self._timer is not None

    def _timer_is_active(self) -> bool:
        if self._timer is None:
            return False
        if not self._timer.is_active:
            # Timer stopped on its own (e.g. a failing delegate)
            self._timer = None
            self._conditions = []
            return False
        return True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # Context manager / cleanup

    def __enter__(self) -> "CaptureScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.invalidate()

    def __del__(self) -> None:
        timer = getattr(self, "_timer", None)
        if timer is not None:
            timer.cancel()
