"""Decides which alarm, if any, fires at a given wall-clock minute.

The caller invokes :func:`evaluate` only on ticks whose second is 0, so each
rule is considered once per minute. A process stall that skips over second 0
misses that minute's alarm; this is a known limitation of the fire window.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .clock import sunday_weekday
from .rules import AlarmRule

logger = logging.getLogger(__name__)


def matches(rule: AlarmRule, now: datetime) -> bool:
    if not rule.is_enabled:
        return False
    if rule.hour != now.hour or rule.minute != now.minute:
        return False
    return not rule.repeat or sunday_weekday(now) in rule.repeat


def evaluate(now: datetime, rules: Iterable[AlarmRule], ringing_active: bool) -> Optional[AlarmRule]:
    """Return the first matching rule in iteration order, or None.

    Nothing matches while a session is active: at most one alarm rings at a
    time and later matches are suppressed, not queued.
    """
    if ringing_active:
        return None
    selected: Optional[AlarmRule] = None
    for rule in rules:
        if not matches(rule, now):
            continue
        if selected is None:
            selected = rule
        else:
            logger.info("Alarm %s also matched at %s but %s fires first", rule.id, now.strftime("%H:%M"), selected.id)
    return selected


def next_fire_time(rule: AlarmRule, now: datetime) -> Optional[datetime]:
    """Next wall-clock minute (strictly after ``now``) at which ``rule`` fires."""
    if not rule.is_enabled:
        return None
    candidate = now.replace(hour=rule.hour, minute=rule.minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    for _ in range(8):
        if not rule.repeat or sunday_weekday(candidate) in rule.repeat:
            return candidate
        candidate += timedelta(days=1)
    return None
