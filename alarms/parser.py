from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

DAY_NAMES = {
    "sun": 0,
    "sunday": 0,
    "mon": 1,
    "monday": 1,
    "tue": 2,
    "tues": 2,
    "tuesday": 2,
    "wed": 3,
    "wednesday": 3,
    "thu": 4,
    "thur": 4,
    "thurs": 4,
    "thursday": 4,
    "fri": 5,
    "friday": 5,
    "sat": 6,
    "saturday": 6,
}

DAY_GROUPS = {
    "daily": [0, 1, 2, 3, 4, 5, 6],
    "everyday": [0, 1, 2, 3, 4, 5, 6],
    "weekdays": [1, 2, 3, 4, 5],
    "weekends": [0, 6],
    "once": [],
}

ACTION_WORDS = {
    "add": "add",
    "new": "add",
    "set": "add",
    "edit": "edit",
    "change": "edit",
    "list": "list",
    "ls": "list",
    "toggle": "toggle",
    "delete": "delete",
    "remove": "delete",
    "rm": "delete",
    "dismiss": "dismiss",
    "stop": "dismiss",
    "snooze": "snooze",
    "ok": "ack",
    "ack": "ack",
    "ready": "ack",
}

TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$", re.IGNORECASE)


@dataclass
class AlarmCommand:
    action: str
    hour: Optional[int] = None
    minute: Optional[int] = None
    repeat: List[int] = field(default_factory=list)
    is_smart: bool = False
    snooze_minutes: Optional[int] = None
    label: Optional[str] = None
    index: Optional[int] = None
    error: Optional[str] = None
    raw_text: str = ""


def parse_command(text: str) -> Optional[AlarmCommand]:
    """Parse a console line such as ``add 7:30 weekdays smart Gym``."""

    cleaned = text.strip()
    if not cleaned:
        return None
    tokens = cleaned.split()
    action = ACTION_WORDS.get(tokens[0].lower())
    if action is None:
        return None
    rest = tokens[1:]

    if action in ("list", "dismiss", "ack"):
        return AlarmCommand(action=action, raw_text=cleaned)

    if action == "snooze":
        minutes = _extract_minutes(rest)
        if rest and minutes is None:
            return _error("Snooze takes a number of minutes.", cleaned)
        return AlarmCommand(action="snooze", snooze_minutes=minutes, raw_text=cleaned)

    if action in ("toggle", "delete"):
        index = _extract_index(rest)
        if index is None:
            return _error(f"Which alarm? Try '{action} 1'.", cleaned)
        return AlarmCommand(action=action, index=index, raw_text=cleaned)

    index = None
    if action == "edit":
        index = _extract_index(rest[:1])
        if index is None:
            return _error("Which alarm? Try 'edit 1 7:30'.", cleaned)
        rest = rest[1:]

    if not rest:
        return _error("Missing time, e.g. 7:30 or 6pm.", cleaned)
    parsed_time = parse_time(rest[0])
    if parsed_time is None:
        return _error(f"Could not read time '{rest[0]}'.", cleaned)
    hour, minute = parsed_time

    command = AlarmCommand(action=action, hour=hour, minute=minute, index=index, raw_text=cleaned)
    label_parts: List[str] = []
    remaining = rest[1:]
    i = 0
    while i < len(remaining):
        token = remaining[i]
        lower = token.lower()
        if label_parts:
            label_parts.append(token)
        elif lower == "smart":
            command.is_smart = True
        elif lower == "snooze" and i + 1 < len(remaining) and remaining[i + 1].isdigit():
            command.snooze_minutes = int(remaining[i + 1])
            i += 1
        elif _parse_days(lower) is not None:
            command.repeat = sorted(set(command.repeat) | set(_parse_days(lower)))
        else:
            label_parts.append(token)
        i += 1
    if label_parts:
        command.label = " ".join(label_parts)
    return command


def parse_time(token: str) -> Optional[Tuple[int, int]]:
    match = TIME_RE.match(token.strip())
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    qualifier = (match.group(3) or "").lower()
    if qualifier:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if qualifier == "pm" else 0)
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def _parse_days(token: str) -> Optional[List[int]]:
    if token in DAY_GROUPS:
        return DAY_GROUPS[token]
    days = []
    for part in token.split(","):
        if not part:
            continue
        if part not in DAY_NAMES:
            return None
        days.append(DAY_NAMES[part])
    return days or None


def _extract_minutes(tokens: List[str]) -> Optional[int]:
    if not tokens:
        return None
    match = re.match(r"^(\d+)(?:m|min|mins|minutes)?$", tokens[0].lower())
    if match:
        return int(match.group(1))
    return None


def _extract_index(tokens: List[str]) -> Optional[int]:
    if not tokens or not tokens[0].isdigit():
        return None
    index = int(tokens[0])
    return index if index >= 1 else None


def _error(message: str, raw: str) -> AlarmCommand:
    return AlarmCommand(action="unknown", error=message, raw_text=raw)
