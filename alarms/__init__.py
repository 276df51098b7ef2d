"""Alarm scheduling engine for the smart alarm clock."""

from .manager import AlarmManager, AlarmRuntimeState
from .parser import AlarmCommand, parse_command
from .rules import AlarmRule
from .store import AlarmStore
