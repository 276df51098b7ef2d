from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List

from .rules import AlarmRule

logger = logging.getLogger(__name__)


def load_alarms(path: Path) -> List[AlarmRule]:
    if not path.exists():
        logger.info("No alarm file at %s, starting empty", path)
        return []
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load alarms from %s: %s", path, exc)
        return []
    if payload is None:
        return []
    if not isinstance(payload, list):
        logger.error("Alarm file %s does not hold a list, starting empty", path)
        return []
    alarms: List[AlarmRule] = []
    seen = set()
    for item in payload:
        try:
            alarm = AlarmRule.from_dict(item)
        except ValueError as exc:
            logger.warning("Skipping alarm item due to parse error: %s", exc)
            continue
        if alarm.id in seen:
            logger.warning("Skipping alarm item with duplicate id %s", alarm.id)
            continue
        seen.add(alarm.id)
        alarms.append(alarm)
    return alarms


def save_alarms(path: Path, alarms: List[AlarmRule]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    serializable = [a.to_dict() for a in alarms]
    tmp_path = path.with_name(path.name + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(serializable, f, ensure_ascii=False, indent=2)
    os.replace(tmp_path, path)


class AlarmStorage:
    """JSON file holding the whole alarm collection."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[AlarmRule]:
        return load_alarms(self.path)

    def save(self, alarms: List[AlarmRule]) -> None:
        save_alarms(self.path, alarms)
