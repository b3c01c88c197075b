"""Opcode word decoding."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Instruction:
    """A fetched 16-bit opcode split into its nibble fields."""

    opcode: int
    family: int
    x: int
    y: int
    n: int
    kk: int
    nnn: int

    def __str__(self) -> str:
        return f"{self.opcode:04X}"


def decode(word: int) -> Instruction:
    word &= 0xFFFF
    return Instruction(
        opcode=word,
        family=(word >> 12) & 0xF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        kk=word & 0xFF,
        nnn=word & 0xFFF,
    )
