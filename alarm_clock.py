import logging
import signal
import sys
from threading import Event, Thread

from alarms.clock import SystemClock
from alarms.intent_router import CommandRouter
from alarms.manager import AlarmManager
from alarms.rules import AlarmRule, display_label, format_clock
from alarms.session import Phase, SummaryPhase
from alarms.sounds import AlarmSoundPlayer
from alarms.storage import AlarmStorage
from alarms.store import AlarmStore
from config import Config, load_config, setup_logging
from gemini_greeting import build_greeting_client

logger = logging.getLogger("smart_alarm")

HELP_TEXT = (
    "Commands: add HH:MM [daily|weekdays|weekends|mon,wed] [smart] [snooze N] [label], "
    "edit N HH:MM ..., list, toggle N, delete N, dismiss, snooze [N], ok"
)


def graceful_exit(signum, frame) -> None:  # pragma: no cover - signal handler
    logger.info("Shutting down (signal %s)", signum)
    raise KeyboardInterrupt()


class AlarmClockRuntime:
    def __init__(self, config: Config):
        self.config = config
        self.clock = SystemClock()
        self.sound_player = AlarmSoundPlayer(config.alarm_sound_path, volume=config.tone_volume)
        self.greeting_client = build_greeting_client(
            config.gemini_api_key,
            config.gemini_model_name,
            config.greeting_prompt,
            config.greeting_timeout_ms,
        )
        self.store = AlarmStore(AlarmStorage(config.alarms_path))
        self.alarm_manager = AlarmManager(
            store=self.store,
            sound_player=self.sound_player,
            clock=self.clock,
            greeting_fn=self.greeting_client.generate if self.greeting_client else None,
            greeting_timeout=config.greeting_timeout_ms / 1000.0,
            default_snooze_minutes=config.alarm_default_snooze_min,
            cancel_snooze_on_delete=config.cancel_snooze_on_delete,
            on_alarm_triggered=self._on_alarm_triggered,
        )
        label_fn = None
        if self.greeting_client and config.enable_smart_labels:
            label_fn = self.greeting_client.suggest_label
        self.router = CommandRouter(
            alarm_manager=self.alarm_manager,
            label_fn=label_fn,
            default_snooze_minutes=config.alarm_default_snooze_min,
        )
        self.stop_event = Event()

    def start(self) -> None:
        self.alarm_manager.start()
        Thread(target=self._greeting_printer, name="greeting-printer", daemon=True).start()

    def shutdown(self) -> None:
        self.stop_event.set()
        self.alarm_manager.shutdown()

    def handle_line(self, line: str) -> None:
        if line.strip().lower() in ("help", "?"):
            print(HELP_TEXT)
            return
        result = self.router.handle_text(line, now=self.clock.now())
        if not result:
            print(f"Unknown command. {HELP_TEXT}")
            return
        if result.response_text:
            print(result.response_text)

    def _on_alarm_triggered(self, alarm: AlarmRule) -> None:
        hint = "Dismiss for a message from Gemini." if alarm.is_smart else "Wake up!"
        print(f"\n*** {display_label(alarm)} {format_clock(alarm.hour, alarm.minute)} *** {hint}")
        print("Type 'dismiss' or 'snooze'.")

    def _greeting_printer(self) -> None:
        shown = None
        while not self.stop_event.is_set():
            session = self.alarm_manager.session
            if (
                session.phase is Phase.DISMISSING_SMART
                and session.summary is SummaryPhase.READY
                and session.message != shown
            ):
                shown = session.message
                print(f'\nGood Morning!\n  "{session.message}"\nType \'ok\' when you are ready.')
            elif session.phase is Phase.IDLE:
                shown = None
            self.stop_event.wait(0.25)


def main() -> None:
    config = load_config()
    setup_logging(config.log_level)
    signal.signal(signal.SIGINT, graceful_exit)
    logger.info("Starting smart alarm (storage=%s)", config.alarms_path)

    runtime = AlarmClockRuntime(config)
    runtime.start()
    print(HELP_TEXT)
    try:
        for line in sys.stdin:
            runtime.handle_line(line)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        runtime.shutdown()


if __name__ == "__main__":
    main()
