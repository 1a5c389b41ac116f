"""Chime playback through QSoundEffect."""

import math
import struct
import wave
from pathlib import Path

from PySide6.QtCore import QUrl
from PySide6.QtMultimedia import QSoundEffect
from fc.common.logger import log
from fc.common.setup import PATHS

_SAMPLE_RATE = 44100


# Writes a short two-partial bell tone with an exponential decay. Only used when no chime.wav ships in assets.
def synthesize_chime(path: Path, seconds=1.2, frequency=880.0):
    frames = bytearray()
    total = int(_SAMPLE_RATE * seconds)
    for i in range(total):
        t = i / _SAMPLE_RATE
        envelope = math.exp(-4.0 * t)
        sample = 0.6 * math.sin(2 * math.pi * frequency * t) + 0.3 * math.sin(2 * math.pi * frequency * 2.76 * t)
        frames += struct.pack("<h", int(max(-1.0, min(1.0, sample * envelope)) * 32767 * 0.8))

    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(_SAMPLE_RATE)
        wav.writeframes(bytes(frames))
    log.info(f"Synthesised chime sound at '{path}'")
    return path


def resolve_chime_path() -> Path:
    shipped = PATHS.assets / "chime.wav"
    if shipped.exists():
        return shipped
    generated = PATHS.data / "chime.wav"
    if not generated.exists():
        synthesize_chime(generated)
    return generated


class ChimePlayer:
    """Plays the chime at a 0-100 volume. Both the wall-clock chime and the pomodoro completion use it."""

    def __init__(self, parent=None):
        self._effect = QSoundEffect(parent)
        self._effect.setLoopCount(1)
        try:
            self._effect.setSource(QUrl.fromLocalFile(str(resolve_chime_path())))
        except OSError:
            log.warning("Could not prepare chime sound, chimes will be silent.", exc_info=True)

    def play(self, volume_pct):
        self._effect.setVolume(max(0, min(100, int(volume_pct))) / 100.0)
        self._effect.play()
        log.debug(f"Played chime at {volume_pct}%")
