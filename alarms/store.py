from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from .rules import AlarmRule

logger = logging.getLogger(__name__)


class AlarmStore:
    """Authoritative in-memory alarm collection.

    Every mutation is followed by a full save through ``storage`` (anything
    with ``load()`` and ``save(alarms)``). Iteration order is insertion order,
    which the trigger evaluator relies on for its tie-break.
    """

    def __init__(self, storage=None):
        self.storage = storage
        self._alarms: List[AlarmRule] = []

    def __len__(self) -> int:
        return len(self._alarms)

    def load(self) -> int:
        loaded = []
        if self.storage is not None:
            try:
                loaded = list(self.storage.load() or [])
            except Exception as exc:
                logger.error("Alarm storage load failed, starting empty: %s", exc)
                loaded = []
        self._alarms = loaded
        logger.info("Loaded %s alarms", len(self._alarms))
        return len(self._alarms)

    def save(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save(list(self._alarms))
        except OSError as exc:
            logger.error("Failed to save alarms: %s", exc)

    def all(self) -> List[AlarmRule]:
        return list(self._alarms)

    def get(self, alarm_id: str) -> Optional[AlarmRule]:
        for alarm in self._alarms:
            if alarm.id == alarm_id:
                return alarm
        return None

    def add(self, rule: AlarmRule) -> str:
        alarm = rule.with_id(self._new_id())
        self._alarms.append(alarm)
        self.save()
        logger.info("Alarm %s added at %02d:%02d (label=%s)", alarm.id, alarm.hour, alarm.minute, alarm.label)
        return alarm.id

    def update(self, alarm_id: str, rule: AlarmRule) -> Optional[AlarmRule]:
        alarm = self.get(alarm_id)
        if alarm is None:
            logger.warning("Update for unknown alarm %s ignored", alarm_id)
            return None
        alarm.copy_from(rule)
        self.save()
        logger.info("Alarm %s updated", alarm_id)
        return alarm

    def toggle(self, alarm_id: str) -> Optional[AlarmRule]:
        alarm = self.get(alarm_id)
        if alarm is None:
            logger.warning("Toggle for unknown alarm %s ignored", alarm_id)
            return None
        alarm.is_enabled = not alarm.is_enabled
        self.save()
        logger.info("Alarm %s %s", alarm_id, "enabled" if alarm.is_enabled else "disabled")
        return alarm

    def set_enabled(self, alarm_id: str, enabled: bool) -> Optional[AlarmRule]:
        alarm = self.get(alarm_id)
        if alarm is None:
            return None
        if alarm.is_enabled != enabled:
            alarm.is_enabled = enabled
            self.save()
        return alarm

    def delete(self, alarm_id: str) -> Optional[AlarmRule]:
        alarm = self.get(alarm_id)
        if alarm is None:
            return None
        self._alarms = [a for a in self._alarms if a.id != alarm_id]
        self.save()
        logger.info("Removed alarm %s", alarm_id)
        return alarm

    def _new_id(self) -> str:
        while True:
            candidate = f"al_{uuid.uuid4().hex[:8]}"
            if self.get(candidate) is None:
                return candidate
