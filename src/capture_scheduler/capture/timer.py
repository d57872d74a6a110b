"""
Periodic timer used to drive scheduler evaluations.

The scheduler only needs "call this every N seconds until cancelled", so the
timer is injected as a factory. ``RepeatingTimer`` is the default, thread
based implementation; tests and host applications with their own event loop
can pass any factory returning an object with ``cancel()`` and ``is_active``.
"""

import threading
from typing import Callable, Optional, Protocol

from capture_scheduler.utils.logging_config import get_logger

logger = get_logger(__name__)

# Returning False from a tick callback stops the timer
TickCallback = Callable[[], Optional[bool]]


class TimerHandle(Protocol):
    """Cancellable handle for a scheduled repeating timer."""

    @property
    def is_active(self) -> bool: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, TickCallback], TimerHandle]


class RepeatingTimer:
    """
    Daemon thread calling ``callback`` every ``interval`` seconds.

    Ticks run one after another on the timer thread, so a slow callback
    delays the next tick instead of overlapping with it. ``cancel()`` never
    blocks; a tick already executing finishes, but no further tick starts.

    Example:
        >>> timer = RepeatingTimer(0.75, scheduler.evaluate_tick)
        >>> ...
        >>> timer.cancel()
    """

    def __init__(
        self,
        interval: float,
        callback: TickCallback,
        name: Optional[str] = None
    ):
        """
        Create and immediately start the timer.

        Args:
            interval: Seconds between ticks (> 0)
            callback: Called on every tick; returning False stops the timer
            name: Optional thread name for debugging
        """
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")

        self.interval = interval
        self._callback = callback
        self._cancelled = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=name or "capture-scheduler-timer",
            daemon=True,
        )
        self._thread.start()

    @property
    def is_active(self) -> bool:
        """Whether further ticks can still happen."""
        return not self._cancelled.is_set() and self._thread.is_alive()

    def cancel(self) -> None:
        """Stop the timer. Safe to call from the timer thread and repeatedly."""
        self._cancelled.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the timer thread to exit (after ``cancel()``)."""
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        # Event.wait returns True as soon as cancel() is called
        while not self._cancelled.wait(self.interval):
            try:
                keep_running = self._callback()
            except Exception:
                logger.exception("Timer callback failed, stopping timer")
                break
            if keep_running is False:
                break
        self._cancelled.set()
