from __future__ import annotations

import logging
import wave
from pathlib import Path
from threading import Event, Lock, Thread
from typing import Optional

import numpy as np

try:
    import winsound
except ImportError:  # pragma: no cover - non-Windows
    winsound = None  # type: ignore

try:
    import pyaudio
except ImportError:  # pragma: no cover - optional audio extra
    pyaudio = None  # type: ignore

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000


def render_alarm_tone(
    duration_seconds: float = 2.0,
    sample_rate: int = SAMPLE_RATE,
    volume: float = 0.5,
    pulse_hz: float = 4.0,
) -> np.ndarray:
    """Triangle tone gliding from 440 to 880 Hz, gated by a square pulse."""
    t = np.arange(int(duration_seconds * sample_rate)) / sample_rate
    freq = np.where(t < 0.5, 440.0, 880.0 - 440.0 * np.exp(-np.maximum(t - 0.5, 0.0) / 0.1))
    phase = 2 * np.pi * np.cumsum(freq) / sample_rate
    triangle = 2 / np.pi * np.arcsin(np.sin(phase))
    gate = (np.sin(2 * np.pi * pulse_hz * t) >= 0).astype(np.float64)
    fade = np.clip(t / 0.2, 0.0, 1.0)
    samples = np.clip(volume, 0.0, 1.0) * triangle * gate * fade
    return (samples * 32767).astype(np.int16)


def ensure_alarm_sound(path: Path, volume: float = 0.5, duration_seconds: float = 2.0) -> None:
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    frames = render_alarm_tone(duration_seconds, SAMPLE_RATE, volume)
    with wave.open(str(path), "w") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(frames.tobytes())
    logger.info("Generated default alarm sound at %s", path)


class AlarmSoundPlayer:
    """Looping alarm tone. ``start`` while playing and ``stop`` while idle are no-ops."""

    def __init__(self, sound_path: Path, volume: float = 0.5):
        self.sound_path = Path(sound_path)
        self.volume = volume
        self._stop_event = Event()
        self._lock = Lock()
        self._playing = False
        self._thread: Optional[Thread] = None

    @property
    def playing(self) -> bool:
        return self._playing

    def start(self) -> None:
        with self._lock:
            if self._playing:
                return
            self._playing = True
            self._stop_event.clear()
        ensure_alarm_sound(self.sound_path, self.volume)
        if winsound:
            try:
                winsound.PlaySound(
                    str(self.sound_path),
                    winsound.SND_FILENAME | winsound.SND_LOOP | winsound.SND_ASYNC,
                )
                return
            except RuntimeError:
                logger.warning("winsound.PlaySound failed, falling back to stream loop")
        self._thread = Thread(target=self._play_loop, name="alarm-tone", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        with self._lock:
            if not self._playing:
                return
            self._playing = False
            self._stop_event.set()
        if winsound:
            try:
                winsound.PlaySound(None, winsound.SND_PURGE)
            except RuntimeError:
                logger.debug("winsound.PlaySound purge failed")
        if self._thread:
            self._thread.join(timeout=2)
        self._thread = None

    def _play_loop(self) -> None:  # pragma: no cover - needs an audio device
        if pyaudio is None:
            while not self._stop_event.is_set():
                logger.info("Alarm ringing...")
                self._stop_event.wait(1.0)
            return
        samples = render_alarm_tone(volume=self.volume).tobytes()
        chunk = SAMPLE_RATE // 10 * 2
        pa = pyaudio.PyAudio()
        try:
            stream = pa.open(format=pyaudio.paInt16, channels=1, rate=SAMPLE_RATE, output=True)
        except OSError as exc:
            logger.warning("Could not open audio output, ringing silently: %s", exc)
            pa.terminate()
            self._stop_event.wait()
            return
        try:
            while not self._stop_event.is_set():
                for idx in range(0, len(samples), chunk):
                    if self._stop_event.is_set():
                        break
                    stream.write(samples[idx : idx + chunk])
        finally:
            stream.stop_stream()
            stream.close()
            pa.terminate()
