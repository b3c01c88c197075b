"""CHIP-8 hexadecimal keypad."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

NUM_KEYS = 16
KEY_MASK = NUM_KEYS - 1


@dataclass
class Chip8Keypad:
    """Snapshot of the 16 keypad lines.

    Layout of the COSMAC VIP keypad::

        1 2 3 C
        4 5 6 D
        7 8 9 E
        A 0 B F
    """

    _keys: List[bool] = field(default_factory=lambda: [False] * NUM_KEYS)

    def set_state(self, keys: Iterable[object]) -> None:
        values = [bool(value) for value in keys]
        if len(values) != NUM_KEYS:
            raise ValueError("keypad state must have 16 entries")
        self._keys = values

    def press(self, key: int) -> None:
        if not 0 <= key < NUM_KEYS:
            raise ValueError("key out of range")
        self._keys[key] = True

    def release(self, key: int) -> None:
        if not 0 <= key < NUM_KEYS:
            raise ValueError("key out of range")
        self._keys[key] = False

    def is_pressed(self, key: int) -> bool:
        return self._keys[key & KEY_MASK]

    def first_pressed(self) -> Optional[int]:
        for index, pressed in enumerate(self._keys):
            if pressed:
                return index
        return None

    def clear(self) -> None:
        self._keys = [False] * NUM_KEYS
