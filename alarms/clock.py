from __future__ import annotations

import logging
import time
from datetime import datetime
from threading import Event, Thread
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


def sunday_weekday(moment: datetime) -> int:
    """Weekday index with 0=Sunday..6=Saturday."""
    return (moment.weekday() + 1) % 7


def format_context_time(moment: datetime) -> str:
    return f"{moment.hour}:{moment.minute:02d}"


class SystemClock:
    """Local wall clock that calls its tick callbacks once per second."""

    def __init__(self) -> None:
        self._callbacks: List[Callable[[datetime], None]] = []
        self._stop_event = Event()
        self._thread: Optional[Thread] = None

    def now(self) -> datetime:
        return datetime.now()

    def on_tick(self, callback: Callable[[datetime], None]) -> None:
        self._callbacks.append(callback)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = Thread(target=self._loop, name="alarm-clock", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2)
        self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            # sleep to the next whole second so second 0 is not skipped
            self._stop_event.wait(1.0 - (time.time() % 1.0))
            if self._stop_event.is_set():
                break
            now = self.now()
            for callback in list(self._callbacks):
                try:
                    callback(now)
                except Exception:
                    logger.error("Clock tick callback failed", exc_info=True)
