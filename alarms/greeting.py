from __future__ import annotations

import logging
import threading
from queue import Empty, Queue
from typing import Callable, Optional

from .session import FALLBACK_GREETING

logger = logging.getLogger(__name__)


def fetch_greeting(
    generate: Optional[Callable[[str], Optional[str]]],
    context_time: str,
    timeout_seconds: float,
    fallback: str = FALLBACK_GREETING,
) -> str:
    """Run ``generate`` on a worker thread and wait at most ``timeout_seconds``.

    Any failure (missing generator, exception, timeout, empty text) yields
    ``fallback``; the raw error is only logged.
    """
    if generate is None:
        return fallback

    queue: "Queue[tuple[bool, Optional[str]]]" = Queue(maxsize=1)

    def _run() -> None:
        try:
            queue.put((True, generate(context_time)))
        except Exception as exc:
            logger.error("Greeting generation failed: %s", exc)
            queue.put((False, None))

    threading.Thread(target=_run, name="greeting-request", daemon=True).start()

    try:
        ok, text = queue.get(timeout=max(0.01, timeout_seconds))
    except Empty:
        logger.error("Timed out waiting for greeting after %.1fs", timeout_seconds)
        return fallback
    if not ok:
        return fallback
    text = (text or "").strip()
    if not text:
        logger.warning("Greeting generator returned empty text")
        return fallback
    return text
