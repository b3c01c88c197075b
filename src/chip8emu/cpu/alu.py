"""8-bit adder shared by the register arithmetic opcodes."""

from __future__ import annotations

from typing import Tuple


def add8(dest: int, operand: int, *, subtract: bool = False) -> Tuple[int, int]:
    """Return ``(result, carry)`` for ``dest + operand`` or ``dest - operand``.

    Subtraction adds the one's complement of ``operand`` with a carry-in of
    one, so the carry-out is 1 when no borrow occurred (``dest >= operand``).
    """

    dest &= 0xFF
    operand &= 0xFF
    if subtract:
        total = dest + (operand ^ 0xFF) + 1
    else:
        total = dest + operand
    return total & 0xFF, (total >> 8) & 0x01
