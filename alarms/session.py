"""Ringing session state machine.

``transition`` is pure: it takes a state and an event and returns the next
state plus the side effects the caller must perform (tone, one-shot
consumption, greeting request, snooze arming).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .rules import AlarmRule

FALLBACK_GREETING = "Good morning! Start your day with energy."


class Phase(Enum):
    IDLE = "idle"
    RINGING = "ringing"
    DISMISSING_SMART = "dismissing_smart"


class SummaryPhase(Enum):
    LOADING = "loading"
    READY = "ready"


class Effect(Enum):
    START_TONE = "start_tone"
    STOP_TONE = "stop_tone"
    CONSUME_ONE_SHOT = "consume_one_shot"
    REQUEST_GREETING = "request_greeting"
    ARM_SNOOZE = "arm_snooze"


class InvalidTransition(Exception):
    pass


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.IDLE
    alarm: Optional[AlarmRule] = None
    triggered_at: Optional[datetime] = None
    source: Optional[str] = None
    summary: Optional[SummaryPhase] = None
    message: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.phase is not Phase.IDLE


IDLE = SessionState()


@dataclass(frozen=True)
class Trigger:
    alarm: AlarmRule
    at: datetime
    source: str = "schedule"


@dataclass(frozen=True)
class Dismiss:
    pass


@dataclass(frozen=True)
class Snooze:
    pass


@dataclass(frozen=True)
class GreetingReady:
    text: Optional[str]


@dataclass(frozen=True)
class Acknowledge:
    pass


def transition(state: SessionState, event) -> Tuple[SessionState, List[Effect]]:
    phase = state.phase

    if isinstance(event, Trigger):
        if phase is not Phase.IDLE:
            raise InvalidTransition(f"cannot trigger {event.alarm.id} while {phase.value}")
        ringing = SessionState(
            phase=Phase.RINGING,
            alarm=event.alarm,
            triggered_at=event.at,
            source=event.source,
        )
        return ringing, [Effect.START_TONE]

    if isinstance(event, Dismiss):
        if phase is not Phase.RINGING:
            raise InvalidTransition(f"nothing ringing to dismiss ({phase.value})")
        effects = [Effect.STOP_TONE]
        if state.alarm.is_one_shot:
            effects.append(Effect.CONSUME_ONE_SHOT)
        if state.alarm.is_smart:
            effects.append(Effect.REQUEST_GREETING)
            return replace(state, phase=Phase.DISMISSING_SMART, summary=SummaryPhase.LOADING), effects
        return IDLE, effects

    if isinstance(event, Snooze):
        if phase is not Phase.RINGING:
            raise InvalidTransition(f"nothing ringing to snooze ({phase.value})")
        return IDLE, [Effect.STOP_TONE, Effect.ARM_SNOOZE]

    if isinstance(event, GreetingReady):
        if phase is not Phase.DISMISSING_SMART or state.summary is not SummaryPhase.LOADING:
            raise InvalidTransition("no greeting is loading")
        text = (event.text or "").strip() or FALLBACK_GREETING
        return replace(state, summary=SummaryPhase.READY, message=text), []

    if isinstance(event, Acknowledge):
        if phase is not Phase.DISMISSING_SMART or state.summary is not SummaryPhase.READY:
            raise InvalidTransition("no greeting ready to acknowledge")
        return IDLE, []

    raise InvalidTransition(f"unknown event {event!r}")
