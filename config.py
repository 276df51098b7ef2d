import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _get_env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip() in {"1", "true", "True", "yes", "YES", "y"}


def _get_env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _get_env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return float(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a float") from exc


@dataclass
class Config:
    gemini_api_key: str
    gemini_model_name: str
    greeting_prompt: str
    greeting_timeout_ms: int
    alarms_path: Path
    alarm_sound_path: Path
    alarm_default_snooze_min: int
    cancel_snooze_on_delete: bool
    tone_volume: float
    enable_smart_labels: bool
    debug: bool
    log_level: str


DEFAULT_GREETING_PROMPT = (
    "You are a motivating, slightly witty alarm clock assistant. "
    "The user just woke up at {time}. "
    "Generate a very short (max 2 sentences) motivational greeting to get them out of bed. "
    "Be punchy and energetic. Do not use hashtags."
)


def load_config(env_path: Optional[Path] = None, require_gemini: bool = False) -> Config:
    if env_path is None:
        env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    gemini_api_key = os.getenv("GEMINI_API_KEY") or ""
    if require_gemini and not gemini_api_key:
        raise ValueError("GEMINI_API_KEY is required in .env")

    gemini_model_name = os.getenv("GEMINI_MODEL_NAME", "gemini-2.5-flash")
    greeting_prompt = os.getenv("GREETING_PROMPT", DEFAULT_GREETING_PROMPT)
    if "{time}" not in greeting_prompt:
        logging.warning("GREETING_PROMPT has no {time} placeholder; wake-up time will not be sent")
    greeting_timeout_ms = max(100, _get_env_int("GREETING_TIMEOUT_MS", 8000))
    alarms_path = Path(os.getenv("ALARM_STORAGE_PATH", "data/alarms.json"))
    alarm_sound_path = Path(os.getenv("ALARM_SOUND_PATH", "data/alarm.wav"))
    alarm_default_snooze_min = max(1, _get_env_int("ALARM_DEFAULT_SNOOZE_MIN", 5))
    cancel_snooze_on_delete = _get_env_bool("ALARM_CANCEL_SNOOZE_ON_DELETE", True)
    tone_volume = min(1.0, max(0.0, _get_env_float("ALARM_TONE_VOLUME", 0.5)))
    enable_smart_labels = _get_env_bool("ENABLE_SMART_LABELS", True)
    debug = _get_env_bool("DEBUG", False)
    log_level = os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO").upper()

    return Config(
        gemini_api_key=gemini_api_key,
        gemini_model_name=gemini_model_name,
        greeting_prompt=greeting_prompt,
        greeting_timeout_ms=greeting_timeout_ms,
        alarms_path=alarms_path,
        alarm_sound_path=alarm_sound_path,
        alarm_default_snooze_min=alarm_default_snooze_min,
        cancel_snooze_on_delete=cancel_snooze_on_delete,
        tone_volume=tone_volume,
        enable_smart_labels=enable_smart_labels,
        debug=debug,
        log_level=log_level,
    )


def setup_logging(log_level: str = "INFO") -> None:
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    log_path = logs_dir / "smart_alarm.log"
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=[file_handler, console_handler],
    )
