import threading
from datetime import datetime

from alarms.clock import SystemClock, format_context_time, sunday_weekday


def test_sunday_based_weekday():
    assert sunday_weekday(datetime(2025, 1, 5)) == 0
    assert sunday_weekday(datetime(2025, 1, 6)) == 1
    assert sunday_weekday(datetime(2025, 1, 11)) == 6


def test_format_context_time():
    assert format_context_time(datetime(2025, 1, 6, 7, 5)) == "7:05"
    assert format_context_time(datetime(2025, 1, 6, 18, 30)) == "18:30"


def test_system_clock_ticks_and_survives_callback_errors():
    clock = SystemClock()
    ticked = threading.Event()

    def broken(now):
        raise RuntimeError("boom")

    clock.on_tick(broken)
    clock.on_tick(lambda now: ticked.set())
    clock.start()
    try:
        assert ticked.wait(3)
    finally:
        clock.stop()
