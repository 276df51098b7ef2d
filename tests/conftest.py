from datetime import datetime

import pytest

from alarms.manager import AlarmManager
from alarms.rules import AlarmRule
from alarms.store import AlarmStore


class FakeTone:
    def __init__(self, fail_start: bool = False):
        self.fail_start = fail_start
        self.starts = 0
        self.stops = 0
        self.playing = False

    def start(self) -> None:
        self.starts += 1
        if self.fail_start:
            raise RuntimeError("audio locked until user interaction")
        self.playing = True

    def stop(self) -> None:
        self.stops += 1
        self.playing = False


class FakeTimer:
    def __init__(self, owner: "FakeTimers", delay: float, fn):
        self.owner = owner
        self.delay = delay
        self.fn = fn
        self.due = None
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.due = self.owner.elapsed + self.delay

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Timer factory whose clock only moves when ``advance`` is called."""

    def __init__(self):
        self.elapsed = 0.0
        self.timers = []

    def __call__(self, delay, fn):
        timer = FakeTimer(self, delay, fn)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.elapsed += seconds
        for timer in list(self.timers):
            if timer.due is None or timer.cancelled or timer.fired:
                continue
            if timer.due <= self.elapsed:
                timer.fired = True
                timer.fn()

    @property
    def active(self):
        return [t for t in self.timers if t.due is not None and not t.cancelled and not t.fired]


class FakeClock:
    def __init__(self, now: datetime):
        self.current = now
        self.callbacks = []
        self.started = False

    def now(self) -> datetime:
        return self.current

    def on_tick(self, callback) -> None:
        self.callbacks.append(callback)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False


class MemoryStorage:
    def __init__(self, alarms=None):
        self.alarms = list(alarms or [])
        self.saves = 0

    def load(self):
        return list(self.alarms)

    def save(self, alarms) -> None:
        self.saves += 1
        self.alarms = list(alarms)


# 2025-01-05 is a Sunday, 2025-01-06 a Monday
SUNDAY_7AM = datetime(2025, 1, 5, 7, 0, 0)
MONDAY_7AM = datetime(2025, 1, 6, 7, 0, 0)


def make_rule(**overrides) -> AlarmRule:
    fields = dict(hour=7, minute=0, label="", is_enabled=True, repeat=[], is_smart=False, snooze_interval=5)
    fields.update(overrides)
    return AlarmRule.create(**fields)


@pytest.fixture
def tone():
    return FakeTone()


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return AlarmStore(storage)


@pytest.fixture
def manager(store, tone, timers):
    return AlarmManager(
        store=store,
        sound_player=tone,
        clock=FakeClock(MONDAY_7AM),
        greeting_fn=lambda context: f"Up and at them, it is {context}!",
        greeting_timeout=2.0,
        timer_factory=timers,
    )
