from types import SimpleNamespace

import pytest

import gemini_greeting
from config import DEFAULT_GREETING_PROMPT
from gemini_greeting import GeminiGreetingClient, build_greeting_client


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, model, contents):
        self.calls.append((model, contents))
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


@pytest.fixture
def fake_models(monkeypatch):
    models = FakeModels(text="Rise and shine, champion!")

    def fake_client(api_key, http_options=None):
        return SimpleNamespace(models=models)

    monkeypatch.setattr(gemini_greeting.genai, "Client", fake_client)
    return models


def test_generate_sends_wake_time(fake_models):
    client = GeminiGreetingClient("key", "gemini-2.5-flash", DEFAULT_GREETING_PROMPT)
    assert client.generate("7:05") == "Rise and shine, champion!"
    model, contents = fake_models.calls[0]
    assert model == "gemini-2.5-flash"
    assert "woke up at 7:05" in contents


def test_generate_raises_on_empty_text(fake_models):
    fake_models.text = ""
    client = GeminiGreetingClient("key", "gemini-2.5-flash", DEFAULT_GREETING_PROMPT)
    with pytest.raises(RuntimeError):
        client.generate("7:05")


def test_suggest_label_strips_quotes_and_falls_back(fake_models):
    client = GeminiGreetingClient("key", "gemini-2.5-flash", DEFAULT_GREETING_PROMPT)
    fake_models.text = '"Dawn Patrol"'
    assert client.suggest_label(6, 0) == "Dawn Patrol"
    fake_models.text = None
    assert client.suggest_label(6, 0) == "Rise & Shine"
    fake_models.error = ConnectionError("offline")
    assert client.suggest_label(6, 0) == "Morning Alarm"


def test_no_api_key_means_no_client():
    assert build_greeting_client("", "gemini-2.5-flash", DEFAULT_GREETING_PROMPT, 8000) is None
