"""Square-wave beeper driven by the sound timer."""

from __future__ import annotations

from array import array
from dataclasses import dataclass, field
import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)

TONE_FREQUENCY = 440
SAMPLE_RATE = 44100
AMPLITUDE = 3000


@dataclass
class Chip8SoundProcessor:
    """Starts and stops a fixed tone as the sound timer runs and expires."""

    history: List[Tuple[str, Tuple[object, ...]]] = field(default_factory=list)
    sample_rate: int = SAMPLE_RATE
    frequency: int = TONE_FREQUENCY
    amplitude: int = AMPLITUDE
    volume: float = 1.0
    enable_audio: bool = False

    def __post_init__(self) -> None:
        self._audio_initialized: bool = False
        self._channel = None
        self._sound = None
        self._active: bool = False

    @property
    def active(self) -> bool:
        return self._active

    def set_active(self, active: bool) -> None:
        if active == self._active:
            return
        self._active = active
        self.history.append(("set_active", (active,)))
        if not self.enable_audio:
            return
        if not self._ensure_mixer():
            return
        if active:
            self._channel.set_volume(self.volume)
            self._channel.play(self._sound, loops=-1)
        else:
            self._channel.stop()

    def shutdown(self) -> None:
        if self._channel is not None:
            self._channel.stop()
        self._active = False

    # ------------------------------------------------------------------
    # Audio control helpers
    # ------------------------------------------------------------------
    def _ensure_mixer(self) -> bool:
        if not self.enable_audio:
            return False
        if self._audio_initialized:
            return True
        try:
            import pygame  # type: ignore

            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
            self._sound = pygame.mixer.Sound(buffer=self.render_period())
            self._channel = pygame.mixer.Channel(0)
            self._audio_initialized = True
        except Exception as exc:
            logger.warning("audio disabled: %s", exc)
            self.enable_audio = False
            self._channel = None
            self._sound = None
            self._audio_initialized = False
        return self._audio_initialized

    def render_period(self) -> array:
        """One full period of the square wave as signed 16-bit samples."""

        period = max(2, self.sample_rate // max(1, self.frequency))
        half = period // 2
        buffer = array("h")
        for index in range(period):
            buffer.append(self.amplitude if (index // half) % 2 else -self.amplitude)
        return buffer
