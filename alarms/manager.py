from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from threading import Event, Lock, Thread
from typing import Callable, Deque, List, Optional, Tuple

from .clock import format_context_time
from .evaluator import evaluate
from .greeting import fetch_greeting
from .rules import AlarmRule
from .session import (
    IDLE,
    Acknowledge,
    Dismiss,
    Effect,
    GreetingReady,
    InvalidTransition,
    Phase,
    SessionState,
    Snooze,
    SummaryPhase,
    Trigger,
    transition,
)
from .snooze import SnoozeHandle, SnoozeScheduler
from .store import AlarmStore

logger = logging.getLogger(__name__)


class AlarmRuntimeState:
    def __init__(self) -> None:
        self.session: SessionState = IDLE
        self.session_seq = 0
        self.last_scanned_minute: Optional[datetime] = None
        self.pending_deliveries: Deque[AlarmRule] = deque()


class AlarmManager:
    def __init__(
        self,
        store: AlarmStore,
        sound_player,
        clock=None,
        greeting_fn: Optional[Callable[[str], Optional[str]]] = None,
        greeting_timeout: float = 8.0,
        default_snooze_minutes: int = 5,
        cancel_snooze_on_delete: bool = True,
        on_alarm_triggered: Optional[Callable[[AlarmRule], None]] = None,
        timer_factory=None,
    ):
        self.store = store
        self.sound_player = sound_player
        self.clock = clock
        self.greeting_fn = greeting_fn
        self.greeting_timeout = max(0.1, greeting_timeout)
        self.default_snooze_minutes = max(1, default_snooze_minutes)
        self.cancel_snooze_on_delete = cancel_snooze_on_delete
        self.on_alarm_triggered = on_alarm_triggered

        self.snoozer = SnoozeScheduler(self._deliver_snoozed, timer_factory=timer_factory)
        self._lock = Lock()
        self._runtime = AlarmRuntimeState()
        self._greeting_done = Event()
        self._greeting_done.set()

    def start(self) -> None:
        with self._lock:
            self.store.load()
        if self.clock is not None:
            self.clock.on_tick(self.tick)
            self.clock.start()

    def shutdown(self) -> None:
        if self.clock is not None:
            self.clock.stop()
        self.snoozer.cancel_all()
        self._stop_tone()
        with self._lock:
            self.store.save()

    # Rule mutations

    def add_alarm(self, rule: AlarmRule) -> AlarmRule:
        with self._lock:
            alarm_id = self.store.add(rule)
            return self.store.get(alarm_id)

    def update_alarm(self, alarm_id: str, rule: AlarmRule) -> Optional[AlarmRule]:
        with self._lock:
            return self.store.update(alarm_id, rule)

    def toggle_alarm(self, alarm_id: str) -> Optional[AlarmRule]:
        with self._lock:
            return self.store.toggle(alarm_id)

    def delete_alarm(self, alarm_id: str) -> Optional[AlarmRule]:
        with self._lock:
            removed = self.store.delete(alarm_id)
            if removed and self.cancel_snooze_on_delete:
                self._runtime.pending_deliveries = deque(
                    a for a in self._runtime.pending_deliveries if a.id != alarm_id
                )
        if removed and self.cancel_snooze_on_delete:
            self.snoozer.cancel(alarm_id)
        return removed

    def list_alarms(self) -> List[AlarmRule]:
        with self._lock:
            return self.store.all()

    # Session

    @property
    def session(self) -> SessionState:
        with self._lock:
            return self._runtime.session

    @property
    def is_ringing(self) -> bool:
        with self._lock:
            return self._runtime.session.active

    def tick(self, now: datetime) -> Optional[AlarmRule]:
        with self._lock:
            due, source = self._next_due(now)
            if due is None:
                return None
            outcome = self._dispatch(Trigger(alarm=due, at=now, source=source))
        if outcome is None:
            return None
        self._perform(outcome)
        return due

    def dismiss(self) -> Optional[AlarmRule]:
        with self._lock:
            outcome = self._dispatch(Dismiss())
            if outcome is None:
                return None
            previous = outcome[0]
            if outcome[1].phase is Phase.DISMISSING_SMART:
                self._greeting_done.clear()
        logger.info("Alarm %s dismissed", previous.alarm.id)
        self._perform(outcome)
        return previous.alarm

    def snooze(self, minutes: Optional[int] = None) -> Optional[SnoozeHandle]:
        with self._lock:
            outcome = self._dispatch(Snooze())
            if outcome is None:
                return None
            alarm = outcome[0].alarm
            if self._was_deleted(alarm):
                logger.info("Alarm %s was deleted while ringing, snooze not armed", alarm.id)
                handle = None
            else:
                handle = self.snoozer.arm(alarm, minutes or alarm.snooze_interval or self.default_snooze_minutes)
        self._perform(outcome)
        return handle

    def acknowledge(self) -> Optional[str]:
        with self._lock:
            outcome = self._dispatch(Acknowledge())
        if outcome is None:
            return None
        return outcome[0].message

    def wait_for_greeting(self, timeout: Optional[float] = None) -> bool:
        return self._greeting_done.wait(timeout)

    # Internals

    def _next_due(self, now: datetime) -> Tuple[Optional[AlarmRule], str]:
        runtime = self._runtime
        if runtime.session.active:
            return None, ""
        if runtime.pending_deliveries:
            return runtime.pending_deliveries.popleft(), "snooze"
        if now.second != 0:
            return None, ""
        minute = now.replace(second=0, microsecond=0)
        if runtime.last_scanned_minute == minute:
            return None, ""
        runtime.last_scanned_minute = minute
        return evaluate(now, self.store.all(), runtime.session.active), "schedule"

    def _dispatch(self, event):
        """Apply ``event`` to the session; caller holds the lock."""
        previous = self._runtime.session
        try:
            new_state, effects = transition(previous, event)
        except InvalidTransition as exc:
            logger.info("Ignored session event: %s", exc)
            return None
        if isinstance(event, Trigger):
            self._runtime.session_seq += 1
        self._runtime.session = new_state
        if Effect.CONSUME_ONE_SHOT in effects:
            self.store.set_enabled(previous.alarm.id, False)
            logger.info("One-shot alarm %s disabled after dismiss", previous.alarm.id)
        return previous, new_state, effects, self._runtime.session_seq

    def _perform(self, outcome) -> None:
        previous, new_state, effects, seq = outcome
        if Effect.STOP_TONE in effects:
            self._stop_tone()
        if Effect.START_TONE in effects:
            self._on_triggered(new_state)
        if Effect.REQUEST_GREETING in effects:
            context = format_context_time(new_state.triggered_at)
            Thread(target=self._greeting_worker, args=(seq, context), name="greeting", daemon=True).start()

    def _on_triggered(self, state: SessionState) -> None:
        alarm = state.alarm
        logger.info(
            "Alarm %s triggered at %s (label=%s, source=%s)",
            alarm.id,
            state.triggered_at.strftime("%H:%M:%S"),
            alarm.label,
            state.source,
        )
        try:
            self.sound_player.start()
        except Exception as exc:
            logger.warning("Alarm tone failed to start, ringing silently: %s", exc)
        if self.on_alarm_triggered:
            try:
                self.on_alarm_triggered(alarm)
            except Exception:
                logger.error("on_alarm_triggered callback failed", exc_info=True)

    def _stop_tone(self) -> None:
        try:
            self.sound_player.stop()
        except Exception as exc:
            logger.warning("Alarm tone failed to stop: %s", exc)

    def _greeting_worker(self, seq: int, context: str) -> None:
        text = fetch_greeting(self.greeting_fn, context, self.greeting_timeout)
        with self._lock:
            state = self._runtime.session
            if (
                self._runtime.session_seq == seq
                and state.phase is Phase.DISMISSING_SMART
                and state.summary is SummaryPhase.LOADING
            ):
                self._dispatch(GreetingReady(text))
            else:
                logger.info("Discarding greeting for a session that has ended")
        self._greeting_done.set()

    def _deliver_snoozed(self, alarm: AlarmRule) -> None:
        now = self._now()
        with self._lock:
            if self._was_deleted(alarm):
                logger.info("Alarm %s was deleted, dropping snooze delivery", alarm.id)
                return
            if self._runtime.session.active:
                logger.info("Alarm %s snooze elapsed while another alarm is active, queued", alarm.id)
                self._runtime.pending_deliveries.append(alarm)
                return
            outcome = self._dispatch(Trigger(alarm=alarm, at=now, source="snooze"))
        if outcome:
            self._perform(outcome)

    def _was_deleted(self, alarm: AlarmRule) -> bool:
        """True when deletes cancel snoozes and ``alarm`` is gone; caller holds the lock."""
        return self.cancel_snooze_on_delete and self.store.get(alarm.id) is None

    def _now(self) -> datetime:
        if self.clock is not None:
            return self.clock.now()
        return datetime.now()
