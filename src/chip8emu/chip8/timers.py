"""Delay and sound countdown timers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Chip8Timers:
    delay: int = 0
    sound: int = 0

    @property
    def sound_active(self) -> bool:
        return self.sound > 0

    def set_delay(self, value: int) -> None:
        self.delay = value & 0xFF

    def set_sound(self, value: int) -> None:
        self.sound = value & 0xFF

    def tick(self) -> bool:
        """Advance one 60 Hz frame.

        Returns whether the sound timer was running at the start of the
        frame, which is the signal the audio device follows.
        """

        sounding = self.sound > 0
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1
        return sounding

    def reset(self) -> None:
        self.delay = 0
        self.sound = 0

    def save_state(self, out: dict[str, object]) -> None:
        out["timers.delay"] = self.delay
        out["timers.sound"] = self.sound

    @staticmethod
    def parse_state(data: dict[str, object]) -> tuple[int, int]:
        delay = int(data.get("timers.delay", 0)) & 0xFF  # type: ignore[arg-type]
        sound = int(data.get("timers.sound", 0)) & 0xFF  # type: ignore[arg-type]
        return delay, sound
