"""Shared fixtures for capture scheduler tests."""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import pytest

from capture_scheduler.capture import CaptureProgress, CaptureScheduler
from capture_scheduler.config import reset_settings


@dataclass
class ManualTimer:
    """Timer handle whose ticks are fired by the test instead of a clock."""

    interval: float
    callback: Callable[[], Optional[bool]]
    cancelled: bool = False
    ticks: int = 0

    @property
    def is_active(self) -> bool:
        return not self.cancelled

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled:
            return
        self.ticks += 1
        if self.callback() is False:
            self.cancelled = True


@dataclass
class ManualTimerFactory:
    """Records every timer a scheduler creates."""

    timers: List[ManualTimer] = field(default_factory=list)

    def __call__(self, interval: float, callback: Callable[[], Optional[bool]]) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def current(self) -> ManualTimer:
        return self.timers[-1]

    def tick(self) -> None:
        self.current.fire()


class RecordingDelegate:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def on_capture_initiated(self, scheduler: CaptureScheduler, progress: CaptureProgress) -> None:
        self.calls.append((scheduler, progress))

    @property
    def progresses(self) -> List[tuple]:
        return [progress.as_tuple() for _, progress in self.calls]


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def delegate() -> RecordingDelegate:
    return RecordingDelegate()


@pytest.fixture
def make_scheduler(timers, delegate):
    def _make(required_captures: int = 3, **kwargs) -> CaptureScheduler:
        kwargs.setdefault("timer_factory", timers)
        kwargs.setdefault("delegate", delegate)
        return CaptureScheduler(required_captures, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for key in (
        "CAPTURE_REQUIRED_CAPTURES",
        "CAPTURE_TIME_INTERVAL",
        "CAPTURE_MIN_POSITIVE_FRACTION",
        "CAPTURE_LOG_LEVEL",
        "CAPTURE_LOG_FILE",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    # Drop console/file handlers installed by setup_logging
    for handler in root.handlers[:]:
        if handler not in handlers and type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
