"""Raw CHIP-8 program images."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chip8emu.memory import MEMORY_SIZE, PROGRAM_START, Memory

MAX_PROGRAM_LENGTH = MEMORY_SIZE - PROGRAM_START

# Built-in demo: draws "HELLO!" from six inline 5-row sprites, then waits
# for a key press.
DEMO_PROGRAM = bytes(
    [
        0x60, 0x00,  # LD V0, 0x00      glyph counter
        0x61, 0x06,  # LD V1, 0x06      x
        0x62, 0x06,  # LD V2, 0x06      y
        0x63, 0x05,  # LD V3, 0x05      sprite stride
        0xA2, 0x18,  # LD I, 0x218      sprite data
        0xD1, 0x25,  # DRW V1, V2, 0x5
        0x71, 0x06,  # ADD V1, 0x06
        0xF3, 0x1E,  # ADD I, V3
        0x70, 0x01,  # ADD V0, 0x01
        0x30, 0x06,  # SE V0, 0x06
        0x12, 0x0A,  # JP 0x20A
        0xF1, 0x0A,  # LD V1, K
        0x90, 0x90, 0xF0, 0x90, 0x90,  # H
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0x80, 0x80, 0x80, 0x80, 0xF0,  # L
        0x80, 0x80, 0x80, 0x80, 0xF0,  # L
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # O
        0xA0, 0xA0, 0xA0, 0x00, 0xA0,  # !
    ]
)
DEMO_NAME = "HELLO"


class ProgramLoadError(RuntimeError):
    """Raised when a program image cannot be read or does not fit."""


@dataclass
class ProgramInfo:
    data: bytes
    name: str = ""
    path: Optional[Path] = None
    start: int = PROGRAM_START

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        """Last address occupied by the image."""

        return self.start + len(self.data) - 1


def load_image(memory: Memory, data: bytes, *, name: str = "") -> ProgramInfo:
    """Copy a raw program image into memory at the program start address."""

    if len(data) > MAX_PROGRAM_LENGTH:
        raise ProgramLoadError(
            f"program is {len(data)} bytes; at most {MAX_PROGRAM_LENGTH} fit above 0x{PROGRAM_START:03X}"
        )
    memory.load_block(PROGRAM_START, data)
    return ProgramInfo(data=bytes(data), name=name)


def read_program_file(path: str | Path) -> ProgramInfo:
    """Read a raw program file without loading it."""

    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise ProgramLoadError(f"cannot read {file_path}: {exc}") from exc
    if not data:
        raise ProgramLoadError(f"{file_path} is empty")
    if len(data) > MAX_PROGRAM_LENGTH:
        raise ProgramLoadError(
            f"{file_path.name} is {len(data)} bytes; at most {MAX_PROGRAM_LENGTH} fit above 0x{PROGRAM_START:03X}"
        )
    return ProgramInfo(data=data, name=file_path.stem.upper(), path=file_path)
