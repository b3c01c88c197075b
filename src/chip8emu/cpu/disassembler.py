"""Mnemonic rendering for decoded instructions."""

from __future__ import annotations

from typing import Optional

from chip8emu.chip8.config import Quirks
from chip8emu.cpu.decoder import Instruction, decode

_ALU_MNEMONICS = {
    0x0: "LD",
    0x1: "OR",
    0x2: "AND",
    0x3: "XOR",
    0x4: "ADD",
    0x5: "SUB",
    0x6: "SHR",
    0x7: "SUBN",
    0xE: "SHL",
}

_MISC_FORMATS = {
    0x07: "LD V{x:X}, DT",
    0x0A: "LD V{x:X}, K",
    0x15: "LD DT, V{x:X}",
    0x18: "LD ST, V{x:X}",
    0x1E: "ADD I, V{x:X}",
    0x29: "LD F, V{x:X}",
    0x33: "LD B, V{x:X}",
    0x55: "LD [I], V{x:X}",
    0x65: "LD V{x:X}, [I]",
}


def disassemble(instruction: Instruction | int, quirks: Optional[Quirks] = None) -> str:
    """Return assembler text such as ``DRW V1, V2, 0x5`` for an opcode.

    ``quirks`` selects the Bnnn form: with ``jump_uses_vx`` the offset
    register is Vx rather than V0.
    """

    ins = decode(instruction) if isinstance(instruction, int) else instruction
    family = ins.family
    x, y = ins.x, ins.y
    if family == 0x0:
        if ins.opcode == 0x00E0:
            return "CLS"
        if ins.opcode == 0x00EE:
            return "RET"
        return f"SYS 0x{ins.nnn:03X}"
    if family == 0x1:
        return f"JP 0x{ins.nnn:03X}"
    if family == 0x2:
        return f"CALL 0x{ins.nnn:03X}"
    if family == 0x3:
        return f"SE V{x:X}, 0x{ins.kk:02X}"
    if family == 0x4:
        return f"SNE V{x:X}, 0x{ins.kk:02X}"
    if family == 0x5:
        return f"SE V{x:X}, V{y:X}"
    if family == 0x6:
        return f"LD V{x:X}, 0x{ins.kk:02X}"
    if family == 0x7:
        return f"ADD V{x:X}, 0x{ins.kk:02X}"
    if family == 0x8:
        mnemonic = _ALU_MNEMONICS.get(ins.n)
        if mnemonic is None:
            return _data_word(ins)
        return f"{mnemonic} V{x:X}, V{y:X}"
    if family == 0x9:
        return f"SNE V{x:X}, V{y:X}"
    if family == 0xA:
        return f"LD I, 0x{ins.nnn:03X}"
    if family == 0xB:
        register = x if quirks is not None and quirks.jump_uses_vx else 0
        return f"JP V{register:X}, 0x{ins.nnn:03X}"
    if family == 0xC:
        return f"RND V{x:X}, 0x{ins.kk:02X}"
    if family == 0xD:
        return f"DRW V{x:X}, V{y:X}, 0x{ins.n:X}"
    if family == 0xE:
        if ins.kk == 0x9E:
            return f"SKP V{x:X}"
        if ins.kk == 0xA1:
            return f"SKNP V{x:X}"
        return _data_word(ins)
    template = _MISC_FORMATS.get(ins.kk)
    if template is None:
        return _data_word(ins)
    return template.format(x=x)


def _data_word(ins: Instruction) -> str:
    return f"DW 0x{ins.opcode:04X}"
