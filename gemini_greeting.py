import logging
from typing import Optional

import google.genai as genai
from google.genai import types

logger = logging.getLogger(__name__)

DEFAULT_LABEL_FALLBACK = "Morning Alarm"


class GeminiGreetingClient:
    def __init__(
        self,
        api_key: str,
        model_name: str,
        greeting_prompt: str,
        timeout_ms: int = 8000,
    ):
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=max(1000, timeout_ms)),
        )
        self.model_name = model_name
        self.greeting_prompt = greeting_prompt
        logger.info("Gemini client ready (model=%s)", model_name)

    def generate(self, context_time: str) -> str:
        """Short motivational greeting for someone who just woke up at ``context_time``."""
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=self.greeting_prompt.format(time=context_time),
        )
        text = (response.text or "").strip()
        if not text:
            raise RuntimeError("Gemini returned an empty greeting")
        return text

    def suggest_label(self, hour: int, minute: int) -> Optional[str]:
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=f"Generate a short, creative 2-3 word label for an alarm set for {hour}:{minute:02d}.",
            )
        except Exception as exc:  # pragma: no cover - transport failures
            logger.error("Failed to get label from Gemini: %s", exc)
            return DEFAULT_LABEL_FALLBACK
        label = (response.text or "").replace('"', "").replace("'", "").strip()
        return label or "Rise & Shine"


def build_greeting_client(api_key: str, model_name: str, greeting_prompt: str, timeout_ms: int):
    if not api_key:
        logger.warning("GEMINI_API_KEY not set, smart alarms will use the fallback greeting")
        return None
    try:
        return GeminiGreetingClient(api_key, model_name, greeting_prompt, timeout_ms)
    except Exception as exc:  # pragma: no cover - initialization failure
        logger.error("Failed to initialize Gemini client: %s", exc)
        return None
