import os
from pathlib import Path

import pytest

from config import DEFAULT_GREETING_PROMPT, load_config

ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_MODEL_NAME",
    "GREETING_PROMPT",
    "GREETING_TIMEOUT_MS",
    "ALARM_STORAGE_PATH",
    "ALARM_SOUND_PATH",
    "ALARM_DEFAULT_SNOOZE_MIN",
    "ALARM_CANCEL_SNOOZE_ON_DELETE",
    "ALARM_TONE_VOLUME",
    "ENABLE_SMART_LABELS",
    "DEBUG",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for name in ENV_VARS:
        os.environ.pop(name, None)


def test_defaults(tmp_path):
    config = load_config(env_path=tmp_path / ".env")
    assert config.gemini_api_key == ""
    assert config.gemini_model_name == "gemini-2.5-flash"
    assert config.greeting_prompt == DEFAULT_GREETING_PROMPT
    assert config.greeting_timeout_ms == 8000
    assert config.alarms_path == Path("data/alarms.json")
    assert config.alarm_default_snooze_min == 5
    assert config.cancel_snooze_on_delete is True
    assert config.log_level == "INFO"


def test_env_file_values(tmp_path):
    env = tmp_path / ".env"
    env.write_text(
        "GEMINI_API_KEY=secret\n"
        "ALARM_STORAGE_PATH=/tmp/a.json\n"
        "ALARM_DEFAULT_SNOOZE_MIN=0\n"
        "ALARM_CANCEL_SNOOZE_ON_DELETE=no\n"
        "ALARM_TONE_VOLUME=3\n"
        "DEBUG=1\n",
        encoding="utf-8",
    )
    config = load_config(env_path=env)
    assert config.gemini_api_key == "secret"
    assert config.alarms_path == Path("/tmp/a.json")
    assert config.alarm_default_snooze_min == 1
    assert config.cancel_snooze_on_delete is False
    assert config.tone_volume == 1.0
    assert config.debug is True
    assert config.log_level == "DEBUG"


def test_invalid_integer_names_variable(tmp_path, monkeypatch):
    monkeypatch.setenv("GREETING_TIMEOUT_MS", "soon")
    with pytest.raises(ValueError, match="GREETING_TIMEOUT_MS"):
        load_config(env_path=tmp_path / ".env")


def test_require_gemini(tmp_path):
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        load_config(env_path=tmp_path / ".env", require_gemini=True)
