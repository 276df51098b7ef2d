from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock, Timer
from typing import Callable, Dict, List, Optional

from .rules import AlarmRule

logger = logging.getLogger(__name__)


@dataclass
class SnoozeHandle:
    alarm_id: str
    delay_seconds: float
    timer: object

    def cancel(self) -> None:
        self.timer.cancel()


class SnoozeScheduler:
    """Deferred re-delivery of snoozed alarms, one pending timer per alarm id.

    ``timer_factory(delay_seconds, fn)`` must return an object with ``start()``
    and ``cancel()``; it defaults to :class:`threading.Timer`.
    """

    def __init__(
        self,
        deliver: Callable[[AlarmRule], None],
        timer_factory: Optional[Callable[[float, Callable[[], None]], object]] = None,
    ):
        self.deliver = deliver
        self.timer_factory = timer_factory or _daemon_timer
        self._pending: Dict[str, SnoozeHandle] = {}
        self._lock = Lock()

    def arm(self, alarm: AlarmRule, delay_minutes: int) -> SnoozeHandle:
        delay_seconds = max(1, int(delay_minutes)) * 60
        handle: Optional[SnoozeHandle] = None

        def _fire() -> None:
            with self._lock:
                if self._pending.get(alarm.id) is not handle:
                    return
                del self._pending[alarm.id]
            logger.info("Snooze elapsed for alarm %s", alarm.id)
            try:
                self.deliver(alarm)
            except Exception:
                logger.error("Snooze delivery failed for alarm %s", alarm.id, exc_info=True)

        timer = self.timer_factory(delay_seconds, _fire)
        handle = SnoozeHandle(alarm_id=alarm.id, delay_seconds=delay_seconds, timer=timer)
        with self._lock:
            previous = self._pending.pop(alarm.id, None)
            self._pending[alarm.id] = handle
        if previous:
            previous.cancel()
            logger.info("Replaced pending snooze for alarm %s", alarm.id)
        timer.start()
        logger.info("Alarm %s snoozed for %s min", alarm.id, delay_seconds // 60)
        return handle

    def cancel(self, alarm_id: str) -> bool:
        with self._lock:
            handle = self._pending.pop(alarm_id, None)
        if not handle:
            return False
        handle.cancel()
        logger.info("Cancelled pending snooze for alarm %s", alarm_id)
        return True

    def cancel_all(self) -> None:
        with self._lock:
            handles = list(self._pending.values())
            self._pending.clear()
        for handle in handles:
            handle.cancel()

    def pending(self, alarm_id: str) -> Optional[SnoozeHandle]:
        with self._lock:
            return self._pending.get(alarm_id)

    def pending_ids(self) -> List[str]:
        with self._lock:
            return list(self._pending)


def _daemon_timer(delay_seconds: float, fn: Callable[[], None]) -> Timer:
    timer = Timer(delay_seconds, fn)
    timer.daemon = True
    return timer
