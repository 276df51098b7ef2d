from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .evaluator import next_fire_time
from .manager import AlarmManager
from .parser import AlarmCommand, parse_command
from .rules import DEFAULT_LABEL, AlarmRule, describe_repeat, display_label, format_clock
from .session import Phase, SummaryPhase

logger = logging.getLogger(__name__)


@dataclass
class IntentResult:
    handled: bool
    response_text: Optional[str] = None
    action: Optional[str] = None


class CommandRouter:
    def __init__(
        self,
        alarm_manager: AlarmManager,
        label_fn: Optional[Callable[[int, int], Optional[str]]] = None,
        default_snooze_minutes: int = 5,
    ):
        self.alarm_manager = alarm_manager
        self.label_fn = label_fn
        self.default_snooze_minutes = default_snooze_minutes

    def handle_text(self, text: str, now: datetime) -> Optional[IntentResult]:
        parsed = parse_command(text)
        if not parsed:
            return None
        logger.debug("Command parsed: %s", parsed)

        if parsed.action == "unknown":
            return IntentResult(handled=True, response_text=parsed.error, action=parsed.action)

        if parsed.action == "list":
            alarms = self.alarm_manager.list_alarms()
            if not alarms:
                resp = "No alarms set."
            else:
                resp = "\n".join(
                    f"{idx}) {format_alarm_line(alarm, now)}" for idx, alarm in enumerate(alarms, start=1)
                )
            return IntentResult(handled=True, response_text=resp, action="list")

        if parsed.action in ("toggle", "delete", "edit"):
            alarm = self._alarm_at(parsed.index)
            if alarm is None:
                return IntentResult(handled=True, response_text="No such alarm.", action=parsed.action)
            if parsed.action == "toggle":
                toggled = self.alarm_manager.toggle_alarm(alarm.id)
                state = "on" if toggled and toggled.is_enabled else "off"
                resp = f"Alarm {format_clock(alarm.hour, alarm.minute)} is {state}."
            elif parsed.action == "delete":
                self.alarm_manager.delete_alarm(alarm.id)
                resp = f"Deleted alarm {format_clock(alarm.hour, alarm.minute)}."
            else:
                rule = self._build_rule(parsed, base=alarm)
                self.alarm_manager.update_alarm(alarm.id, rule)
                resp = f"Alarm updated: {format_alarm_line(rule, now)}"
            return IntentResult(handled=True, response_text=resp, action=parsed.action)

        if parsed.action == "add":
            rule = self._build_rule(parsed)
            alarm = self.alarm_manager.add_alarm(rule)
            resp = f"Alarm set: {format_alarm_line(alarm, now)}"
            return IntentResult(handled=True, response_text=resp, action="add")

        if parsed.action == "dismiss":
            dismissed = self.alarm_manager.dismiss()
            if not dismissed:
                return IntentResult(handled=True, response_text="Nothing is ringing.", action="dismiss")
            if self.alarm_manager.session.phase is Phase.DISMISSING_SMART:
                resp = "Alarm dismissed. Fetching your morning message..."
            else:
                resp = "Alarm dismissed."
            return IntentResult(handled=True, response_text=resp, action="dismiss")

        if parsed.action == "snooze":
            handle = self.alarm_manager.snooze(parsed.snooze_minutes)
            if handle:
                resp = f"Snoozed for {int(handle.delay_seconds // 60)} minutes."
            else:
                resp = "Nothing is ringing, nothing to snooze."
            return IntentResult(handled=True, response_text=resp, action="snooze")

        if parsed.action == "ack":
            session = self.alarm_manager.session
            if session.phase is Phase.DISMISSING_SMART and session.summary is SummaryPhase.LOADING:
                return IntentResult(handled=True, response_text="Still thinking, one moment...", action="ack")
            message = self.alarm_manager.acknowledge()
            resp = "Have a great day!" if message else "Nothing to acknowledge."
            return IntentResult(handled=True, response_text=resp, action="ack")

        return IntentResult(handled=True, response_text=None, action=parsed.action)

    def _alarm_at(self, index: Optional[int]) -> Optional[AlarmRule]:
        alarms = self.alarm_manager.list_alarms()
        if index is None or not 1 <= index <= len(alarms):
            return None
        return alarms[index - 1]

    def _build_rule(self, parsed: AlarmCommand, base: Optional[AlarmRule] = None) -> AlarmRule:
        label = parsed.label
        if label is None and base is not None:
            label = base.label
        if label is None:
            label = self._suggest_label(parsed.hour, parsed.minute)
        snooze = parsed.snooze_minutes
        if snooze is None:
            snooze = base.snooze_interval if base else self.default_snooze_minutes
        return AlarmRule.create(
            hour=parsed.hour,
            minute=parsed.minute,
            label=label,
            is_enabled=True,
            repeat=parsed.repeat,
            is_smart=parsed.is_smart,
            snooze_interval=snooze,
        )

    def _suggest_label(self, hour: int, minute: int) -> str:
        if not self.label_fn:
            return DEFAULT_LABEL
        try:
            return self.label_fn(hour, minute) or DEFAULT_LABEL
        except Exception as exc:
            logger.warning("Label suggestion failed: %s", exc)
            return DEFAULT_LABEL


def format_alarm_line(alarm: AlarmRule, now: datetime) -> str:
    parts = [format_clock(alarm.hour, alarm.minute), describe_repeat(alarm.repeat), display_label(alarm)]
    if alarm.is_smart:
        parts.append("smart")
    line = " | ".join(parts)
    if not alarm.is_enabled:
        return f"{line} (off)"
    upcoming = next_fire_time(alarm, now)
    if upcoming is not None:
        line += f" (next {upcoming.strftime('%a %H:%M')})"
    return line
