"""Flat 4 KiB memory used by the CHIP-8 machine."""

from __future__ import annotations

import logging
from typing import Iterable, List

logger = logging.getLogger(__name__)

MEMORY_SIZE = 0x1000
ADDRESS_MASK = MEMORY_SIZE - 1
PROGRAM_START = 0x200
FONT_START = 0x050
FONT_GLYPH_SIZE = 5

# Built-in hexadecimal glyphs, five rows of four pixels each.
FONTSET: List[int] = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]


def glyph_address(digit: int) -> int:
    """Return the address of the built-in glyph for ``digit``."""

    return FONT_START + FONT_GLYPH_SIZE * digit


class Memory:
    """Byte-addressable RAM supporting 8/16-bit big-endian accesses.

    Addresses wrap inside the 4 KiB space; the architecture leaves
    out-of-range access undefined and the wrap keeps it memory-safe.
    """

    def __init__(self, size: int = MEMORY_SIZE) -> None:
        if size <= 0 or size & (size - 1):
            raise ValueError("memory size must be a positive power of two")
        self.size = size
        self._mask = size - 1
        self.data = bytearray(size)
        self._debug: bool = False

    def load8(self, address: int) -> int:
        addr = address & self._mask
        value = self.data[addr]
        if self._debug:
            logger.debug("load8: addr=%03X val=%02X", addr, value)
        return value

    def store8(self, address: int, value: int) -> None:
        addr = address & self._mask
        if self._debug:
            logger.debug("store8: addr=%03X val=%02X", addr, value & 0xFF)
        self.data[addr] = value & 0xFF

    def load16(self, address: int) -> int:
        hi = self.data[address & self._mask]
        lo = self.data[(address + 1) & self._mask]
        value = (hi << 8) | lo
        if self._debug:
            logger.debug("load16: addr=%03X val=%04X", address & self._mask, value)
        return value

    def store16(self, address: int, value: int) -> None:
        if self._debug:
            logger.debug("store16: addr=%03X val=%04X", address & self._mask, value & 0xFFFF)
        self.data[address & self._mask] = (value >> 8) & 0xFF
        self.data[(address + 1) & self._mask] = value & 0xFF

    def load_block(self, address: int, data: Iterable[int]) -> int:
        """Copy ``data`` into memory starting at ``address``; return the byte count."""

        count = 0
        for offset, value in enumerate(data):
            self.data[(address + offset) & self._mask] = value & 0xFF
            count += 1
        return count

    def read_block(self, address: int, length: int) -> bytes:
        return bytes(self.data[(address + offset) & self._mask] for offset in range(length))

    def install_fontset(self) -> None:
        self.load_block(FONT_START, FONTSET)

    def clear(self) -> None:
        self.data[:] = bytes(self.size)

    def enable_debug(self, enabled: bool) -> None:
        self._debug = enabled


__all__ = [
    "ADDRESS_MASK",
    "FONTSET",
    "FONT_GLYPH_SIZE",
    "FONT_START",
    "MEMORY_SIZE",
    "Memory",
    "PROGRAM_START",
    "glyph_address",
]
