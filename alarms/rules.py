from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Alarm"
DEFAULT_SNOOZE_MINUTES = 5
DAYS_OF_WEEK = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
WEEKDAYS = frozenset({1, 2, 3, 4, 5})
WEEKENDS = frozenset({0, 6})
_TRUE_TOKENS = {"1", "true", "yes", "y"}
_FALSE_TOKENS = {"0", "false", "no", "n"}


@dataclass
class AlarmRule:
    id: str
    hour: int
    minute: int
    label: str = ""
    is_enabled: bool = True
    repeat: frozenset = field(default_factory=frozenset)
    is_smart: bool = False
    snooze_interval: int = DEFAULT_SNOOZE_MINUTES

    def __post_init__(self) -> None:
        self.hour = _clamp(_as_int(self.hour, "hour"), 0, 23)
        self.minute = _clamp(_as_int(self.minute, "minute"), 0, 59)
        self.label = str(self.label or "")
        self.repeat = normalize_repeat(self.repeat or ())
        self.snooze_interval = max(1, _as_int(self.snooze_interval, "snooze_interval"))

    @property
    def is_one_shot(self) -> bool:
        return not self.repeat

    @classmethod
    def create(
        cls,
        hour,
        minute,
        label: str = "",
        is_enabled: bool = True,
        repeat: Optional[Iterable[int]] = None,
        is_smart: bool = False,
        snooze_interval=DEFAULT_SNOOZE_MINUTES,
        id: str = "",
    ) -> "AlarmRule":
        """Build a rule from editor input, clamping values into their valid range."""
        return cls(
            id=id,
            hour=hour,
            minute=minute,
            label=label,
            is_enabled=bool(is_enabled),
            repeat=repeat or (),
            is_smart=bool(is_smart),
            snooze_interval=snooze_interval,
        )

    def copy_from(self, other: "AlarmRule") -> None:
        """Overwrite schedule and flags with ``other``'s values, keeping this id."""
        other = replace(other)
        self.hour = other.hour
        self.minute = other.minute
        self.label = other.label
        self.is_enabled = other.is_enabled
        self.repeat = frozenset(other.repeat)
        self.is_smart = other.is_smart
        self.snooze_interval = other.snooze_interval

    def with_id(self, new_id: str) -> "AlarmRule":
        return replace(self, id=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "hour": self.hour,
            "minute": self.minute,
            "label": self.label,
            "is_enabled": self.is_enabled,
            "repeat": sorted(self.repeat),
            "is_smart": self.is_smart,
            "snooze_interval": self.snooze_interval,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AlarmRule":
        if not isinstance(data, dict):
            raise ValueError("Alarm payload must be an object")
        alarm_id = data.get("id")
        if alarm_id in (None, "") or "hour" not in data or "minute" not in data:
            raise ValueError("Alarm payload missing id/hour/minute fields")
        repeat = data.get("repeat")
        if repeat is None:
            repeat = []
        if not isinstance(repeat, (list, tuple)):
            raise ValueError("Alarm repeat must be a list of weekday indices")
        return cls.create(
            id=str(alarm_id),
            hour=data["hour"],
            minute=data["minute"],
            label=data.get("label") or "",
            is_enabled=_as_bool(_pick(data, "is_enabled", "isEnabled", True), "is_enabled"),
            repeat=[_as_int(day, "repeat") for day in repeat],
            is_smart=_as_bool(_pick(data, "is_smart", "isSmart", False), "is_smart"),
            snooze_interval=_pick(data, "snooze_interval", "snoozeInterval", DEFAULT_SNOOZE_MINUTES),
        )


def normalize_repeat(days: Iterable[int]) -> frozenset:
    result = set()
    for day in days:
        value = _as_int(day, "repeat")
        if 0 <= value <= 6:
            result.add(value)
        else:
            logger.debug("Dropping weekday index %s outside 0..6", value)
    return frozenset(result)


def describe_repeat(repeat: Iterable[int]) -> str:
    days = frozenset(repeat)
    if not days:
        return "Once"
    if len(days) == 7:
        return "Every day"
    if days == WEEKDAYS:
        return "Weekdays"
    if days == WEEKENDS:
        return "Weekends"
    return ", ".join(DAYS_OF_WEEK[d] for d in sorted(days))


def format_clock(hour: int, minute: int) -> str:
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {ampm}"


def display_label(rule: AlarmRule) -> str:
    return rule.label or DEFAULT_LABEL


def _pick(data: dict, key: str, legacy_key: str, default):
    if key in data and data[key] is not None:
        return data[key]
    if legacy_key in data and data[legacy_key] is not None:
        return data[legacy_key]
    return default


def _as_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    raise ValueError(f"{name} must be an integer, got {value!r}")


def _as_bool(value, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _clamp(value: int, low: int, high: int) -> int:
    clamped = min(high, max(low, value))
    if clamped != value:
        logger.warning("Clamped out-of-range value %s to %s", value, clamped)
    return clamped
