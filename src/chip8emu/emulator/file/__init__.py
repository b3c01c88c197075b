"""Program loading helpers for the CHIP-8 emulator."""

from chip8emu.emulator.file.program import (
    DEMO_NAME,
    DEMO_PROGRAM,
    MAX_PROGRAM_LENGTH,
    ProgramInfo,
    ProgramLoadError,
    load_image,
    read_program_file,
)

__all__ = [
    "DEMO_NAME",
    "DEMO_PROGRAM",
    "MAX_PROGRAM_LENGTH",
    "ProgramInfo",
    "ProgramLoadError",
    "load_image",
    "read_program_file",
]
