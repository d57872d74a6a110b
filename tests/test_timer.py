import threading
import time

import pytest

from capture_scheduler import CaptureScheduler
from capture_scheduler.capture import RepeatingTimer


def wait_until(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_repeating_timer_ticks_until_cancelled() -> None:
    ticks = []
    timer = RepeatingTimer(0.01, lambda: ticks.append(time.monotonic()))

    assert wait_until(lambda: len(ticks) >= 3)
    timer.cancel()
    timer.join(1.0)
    count = len(ticks)
    time.sleep(0.05)

    assert not timer.is_active
    assert len(ticks) == count


def test_callback_returning_false_stops_timer() -> None:
    calls = []

    def callback():
        calls.append(1)
        return False

    timer = RepeatingTimer(0.01, callback)
    timer.join(1.0)
    assert calls == [1]
    assert not timer.is_active


def test_failing_callback_stops_timer(caplog) -> None:
    def callback():
        raise RuntimeError("boom")

    timer = RepeatingTimer(0.01, callback)
    timer.join(1.0)
    assert not timer.is_active
    assert "Timer callback failed" in caplog.text


def test_ticks_never_overlap() -> None:
    active = threading.Semaphore(1)
    overlaps = []
    ticks = []

    def slow_callback():
        if not active.acquire(blocking=False):
            overlaps.append(1)
            return
        time.sleep(0.03)
        ticks.append(1)
        active.release()

    timer = RepeatingTimer(0.005, slow_callback)
    assert wait_until(lambda: len(ticks) >= 3)
    timer.cancel()
    timer.join(1.0)
    assert overlaps == []


def test_cancel_from_inside_callback() -> None:
    holder = {}

    def callback():
        holder["timer"].cancel()
        holder["timer"].join()

    holder["timer"] = RepeatingTimer(0.01, callback)
    holder["timer"].join(1.0)
    assert not holder["timer"].is_active


def test_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        RepeatingTimer(0, lambda: None)


def test_scheduler_with_real_timer_completes_session() -> None:
    progresses = []
    done = threading.Event()

    def on_capture(scheduler, progress):
        progresses.append(progress.as_tuple())
        if scheduler.is_completed:
            done.set()

    scheduler = CaptureScheduler(2, time_interval=0.1, minimal_positive_condition_fraction=0.5)
    scheduler.delegate = on_capture

    scheduler.report_condition(True)
    assert wait_until(lambda: scheduler.progress.completed == 1)
    scheduler.report_condition(True)
    assert done.wait(3.0)

    assert progresses == [(1, 2), (2, 2)]
    assert scheduler.is_invalidated
    assert wait_until(lambda: not scheduler.is_running)

    scheduler.report_condition(True)
    assert scheduler.progress.as_tuple() == (2, 2)


def test_concurrent_producers_with_real_timer() -> None:
    progresses = []
    observed = []

    def on_capture(scheduler, progress):
        progresses.append(progress.as_tuple())

    scheduler = CaptureScheduler(5, time_interval=0.02, minimal_positive_condition_fraction=0.5)
    scheduler.delegate = on_capture
    deadline = time.monotonic() + 5.0

    def producer():
        while not scheduler.is_completed and time.monotonic() < deadline:
            scheduler.report_condition(True)
            time.sleep(0.001)

    def monitor():
        while not scheduler.is_completed and time.monotonic() < deadline:
            observed.append(scheduler.progress.completed)
            time.sleep(0.002)
        observed.append(scheduler.progress.completed)

    threads = [threading.Thread(target=producer) for _ in range(4)]
    threads.append(threading.Thread(target=monitor))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(6.0)

    assert scheduler.is_completed
    assert scheduler.is_invalidated
    assert progresses == [(n, 5) for n in range(1, 6)]
    assert all(0 <= value <= 5 for value in observed)
    assert observed == sorted(observed)
    assert observed[-1] == 5
    assert wait_until(lambda: not scheduler.is_running)
