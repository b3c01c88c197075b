"""CHIP-8 CPU core: register file, dispatch tables and opcode handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
import random
import time
from typing import Callable, Dict, List, Optional

from chip8emu.chip8.config import Quirks
from chip8emu.cpu.alu import add8
from chip8emu.cpu.decoder import Instruction, decode
from chip8emu.memory import PROGRAM_START, glyph_address

NUM_REGISTERS = 16
STACK_DEPTH = 16
STACK_MASK = STACK_DEPTH - 1
FLAG = 0xF

Handler = Callable[[Instruction], None]


@dataclass
class CPURegisters:
    """Register file, program counter and call stack."""

    v: List[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)
    index: int = 0
    program_counter: int = PROGRAM_START
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    stack_pointer: int = 0


class CPU:
    """Abstract CPU base class."""

    def __init__(self, computer: object) -> None:
        self.computer = computer

    def reset(self) -> None:
        raise NotImplementedError

    def execute(self, cycles: int) -> int:
        raise NotImplementedError


class Chip8CPU(CPU):
    """Interpreter for the 35-instruction CHIP-8 set.

    Each :meth:`step` fetches one big-endian opcode word at the program
    counter, advances the counter by two and dispatches on the high nibble.
    The ``0x0``, ``0x8``, ``0xE`` and ``0xF`` families go through a second
    table; anything missing from either table is ignored.

    Out-of-range accesses are left to wrap: memory addresses inside the
    memory object, the stack pointer within its 16 slots and keypad lookups
    within the 16 keys.
    """

    OP_SYS = 0x0
    OP_JP = 0x1
    OP_CALL = 0x2
    OP_SE_BYTE = 0x3
    OP_SNE_BYTE = 0x4
    OP_SE_REG = 0x5
    OP_LD_BYTE = 0x6
    OP_ADD_BYTE = 0x7
    OP_ALU = 0x8
    OP_SNE_REG = 0x9
    OP_LD_I = 0xA
    OP_JP_V0 = 0xB
    OP_RND = 0xC
    OP_DRW = 0xD
    OP_SKP = 0xE
    OP_MISC = 0xF

    SYS_CLS = 0xE0
    SYS_RET = 0xEE

    ALU_LD = 0x0
    ALU_OR = 0x1
    ALU_AND = 0x2
    ALU_XOR = 0x3
    ALU_ADD = 0x4
    ALU_SUB = 0x5
    ALU_SHR = 0x6
    ALU_SUBN = 0x7
    ALU_SHL = 0xE

    SKP_PRESSED = 0x9E
    SKP_NOT_PRESSED = 0xA1

    MISC_LD_VX_DT = 0x07
    MISC_LD_VX_K = 0x0A
    MISC_LD_DT_VX = 0x15
    MISC_LD_ST_VX = 0x18
    MISC_ADD_I_VX = 0x1E
    MISC_LD_F_VX = 0x29
    MISC_LD_B_VX = 0x33
    MISC_LD_I_VX = 0x55
    MISC_LD_VX_I = 0x65

    def __init__(self, computer: object, *, quirks: Optional[Quirks] = None, seed: Optional[int] = None) -> None:
        super().__init__(computer)
        self.registers = CPURegisters()
        self.quirks = quirks if quirks is not None else Quirks()
        self.hardware = getattr(computer, "hardware", None)
        if self.hardware is None:
            raise RuntimeError("Chip8CPU requires a computer with attached hardware")
        self.memory = self.hardware.memory
        self.seed = seed if seed is not None else time.time_ns()
        self.rng = random.Random(self.seed)
        self.last_instruction: Optional[Instruction] = None
        self._primary: Dict[int, Handler] = {}
        self._table_0: Dict[int, Handler] = {}
        self._table_8: Dict[int, Handler] = {}
        self._table_e: Dict[int, Handler] = {}
        self._table_f: Dict[int, Handler] = {}
        self._init_opcode_tables()

    # ------------------------------------------------------------------
    # Cycle driver
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.registers = CPURegisters()
        self.last_instruction = None

    def execute(self, cycles: int) -> int:
        executed = 0
        while executed < cycles:
            self.step()
            executed += 1
        return executed

    def step(self) -> Instruction:
        """Run exactly one instruction. Timers are not touched here."""

        instruction = self.fetch()
        self.dispatch(instruction)
        self.last_instruction = instruction
        self._increment_clock(1)
        return instruction

    def fetch(self) -> Instruction:
        regs = self.registers
        word = self.memory.load16(regs.program_counter)
        regs.program_counter = (regs.program_counter + 2) & 0xFFFF
        return decode(word)

    def dispatch(self, instruction: Instruction) -> None:
        handler = self._primary.get(instruction.family)
        if handler is not None:
            handler(instruction)

    def _increment_clock(self, ticks: int) -> None:
        if hasattr(self.computer, "clock_count"):
            setattr(self.computer, "clock_count", getattr(self.computer, "clock_count") + ticks)

    # ------------------------------------------------------------------
    # Dispatch tables
    # ------------------------------------------------------------------
    def _init_opcode_tables(self) -> None:
        self._primary.clear()
        self._register(self._primary, self.OP_SYS, self._dispatch_sys)
        self._register(self._primary, self.OP_JP, self._op_jp)
        self._register(self._primary, self.OP_CALL, self._op_call)
        self._register(self._primary, self.OP_SE_BYTE, self._op_se_byte)
        self._register(self._primary, self.OP_SNE_BYTE, self._op_sne_byte)
        self._register(self._primary, self.OP_SE_REG, self._op_se_reg)
        self._register(self._primary, self.OP_LD_BYTE, self._op_ld_byte)
        self._register(self._primary, self.OP_ADD_BYTE, self._op_add_byte)
        self._register(self._primary, self.OP_ALU, self._dispatch_alu)
        self._register(self._primary, self.OP_SNE_REG, self._op_sne_reg)
        self._register(self._primary, self.OP_LD_I, self._op_ld_i)
        self._register(self._primary, self.OP_JP_V0, self._op_jp_offset)
        self._register(self._primary, self.OP_RND, self._op_rnd)
        self._register(self._primary, self.OP_DRW, self._op_drw)
        self._register(self._primary, self.OP_SKP, self._dispatch_skp)
        self._register(self._primary, self.OP_MISC, self._dispatch_misc)

        self._register(self._table_0, self.SYS_CLS, self._op_cls)
        self._register(self._table_0, self.SYS_RET, self._op_ret)

        self._register(self._table_8, self.ALU_LD, self._op_ld_reg)
        self._register(self._table_8, self.ALU_OR, self._op_or)
        self._register(self._table_8, self.ALU_AND, self._op_and)
        self._register(self._table_8, self.ALU_XOR, self._op_xor)
        self._register(self._table_8, self.ALU_ADD, self._op_add_reg)
        self._register(self._table_8, self.ALU_SUB, self._op_sub)
        self._register(self._table_8, self.ALU_SHR, self._op_shr)
        self._register(self._table_8, self.ALU_SUBN, self._op_subn)
        self._register(self._table_8, self.ALU_SHL, self._op_shl)

        self._register(self._table_e, self.SKP_PRESSED, self._op_skp)
        self._register(self._table_e, self.SKP_NOT_PRESSED, self._op_sknp)

        self._register(self._table_f, self.MISC_LD_VX_DT, self._op_ld_vx_dt)
        self._register(self._table_f, self.MISC_LD_VX_K, self._op_ld_vx_k)
        self._register(self._table_f, self.MISC_LD_DT_VX, self._op_ld_dt_vx)
        self._register(self._table_f, self.MISC_LD_ST_VX, self._op_ld_st_vx)
        self._register(self._table_f, self.MISC_ADD_I_VX, self._op_add_i_vx)
        self._register(self._table_f, self.MISC_LD_F_VX, self._op_ld_f_vx)
        self._register(self._table_f, self.MISC_LD_B_VX, self._op_ld_b_vx)
        self._register(self._table_f, self.MISC_LD_I_VX, self._op_ld_i_vx)
        self._register(self._table_f, self.MISC_LD_VX_I, self._op_ld_vx_i)

    @staticmethod
    def _register(table: Dict[int, Handler], key: int, handler: Handler) -> None:
        table[key] = handler

    def _dispatch_sys(self, ins: Instruction) -> None:
        handler = self._table_0.get(ins.kk)
        if handler is not None:
            handler(ins)

    def _dispatch_alu(self, ins: Instruction) -> None:
        handler = self._table_8.get(ins.n)
        if handler is not None:
            handler(ins)

    def _dispatch_skp(self, ins: Instruction) -> None:
        handler = self._table_e.get(ins.kk)
        if handler is not None:
            handler(ins)

    def _dispatch_misc(self, ins: Instruction) -> None:
        handler = self._table_f.get(ins.kk)
        if handler is not None:
            handler(ins)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.registers.program_counter = (self.registers.program_counter + 2) & 0xFFFF

    def _alu(self, x: int, operand: int, *, subtract: bool = False, set_flag: bool = True) -> None:
        v = self.registers.v
        result, carry = add8(v[x], operand, subtract=subtract)
        if set_flag:
            v[FLAG] = carry
        v[x] = result

    def _push(self, address: int) -> None:
        regs = self.registers
        regs.stack[regs.stack_pointer & STACK_MASK] = address & 0xFFFF
        regs.stack_pointer = (regs.stack_pointer + 1) & STACK_MASK

    def _pop(self) -> int:
        regs = self.registers
        regs.stack_pointer = (regs.stack_pointer - 1) & STACK_MASK
        return regs.stack[regs.stack_pointer]

    def _shift_source(self, ins: Instruction) -> int:
        v = self.registers.v
        return v[ins.y] if self.quirks.shift_uses_vy else v[ins.x]

    # ------------------------------------------------------------------
    # 0x0 family
    # ------------------------------------------------------------------
    def _op_cls(self, ins: Instruction) -> None:
        self.hardware.display.clear()

    def _op_ret(self, ins: Instruction) -> None:
        self.registers.program_counter = self._pop()

    # ------------------------------------------------------------------
    # Flow control and comparisons
    # ------------------------------------------------------------------
    def _op_jp(self, ins: Instruction) -> None:
        self.registers.program_counter = ins.nnn

    def _op_call(self, ins: Instruction) -> None:
        self._push(self.registers.program_counter)
        self.registers.program_counter = ins.nnn

    def _op_se_byte(self, ins: Instruction) -> None:
        self._skip_if(self.registers.v[ins.x] == ins.kk)

    def _op_sne_byte(self, ins: Instruction) -> None:
        self._skip_if(self.registers.v[ins.x] != ins.kk)

    def _op_se_reg(self, ins: Instruction) -> None:
        v = self.registers.v
        self._skip_if(v[ins.x] == v[ins.y])

    def _op_sne_reg(self, ins: Instruction) -> None:
        v = self.registers.v
        self._skip_if(v[ins.x] != v[ins.y])

    def _op_jp_offset(self, ins: Instruction) -> None:
        offset = self.registers.v[ins.x if self.quirks.jump_uses_vx else 0]
        self.registers.program_counter = (ins.nnn + offset) & 0xFFF

    # ------------------------------------------------------------------
    # Loads and immediate arithmetic
    # ------------------------------------------------------------------
    def _op_ld_byte(self, ins: Instruction) -> None:
        self.registers.v[ins.x] = ins.kk

    def _op_add_byte(self, ins: Instruction) -> None:
        self._alu(ins.x, ins.kk, set_flag=False)

    def _op_ld_i(self, ins: Instruction) -> None:
        self.registers.index = ins.nnn

    def _op_rnd(self, ins: Instruction) -> None:
        self.registers.v[ins.x] = self.rng.randrange(256) & ins.kk

    # ------------------------------------------------------------------
    # 0x8 family
    # ------------------------------------------------------------------
    def _op_ld_reg(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] = v[ins.y]

    def _op_or(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] |= v[ins.y]

    def _op_and(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] &= v[ins.y]

    def _op_xor(self, ins: Instruction) -> None:
        v = self.registers.v
        v[ins.x] ^= v[ins.y]

    def _op_add_reg(self, ins: Instruction) -> None:
        self._alu(ins.x, self.registers.v[ins.y])

    def _op_sub(self, ins: Instruction) -> None:
        self._alu(ins.x, self.registers.v[ins.y], subtract=True)

    def _op_subn(self, ins: Instruction) -> None:
        v = self.registers.v
        result, carry = add8(v[ins.y], v[ins.x], subtract=True)
        v[FLAG] = carry
        v[ins.x] = result

    def _op_shr(self, ins: Instruction) -> None:
        value = self._shift_source(ins)
        v = self.registers.v
        v[FLAG] = value & 0x01
        v[ins.x] = value >> 1

    def _op_shl(self, ins: Instruction) -> None:
        value = self._shift_source(ins)
        v = self.registers.v
        v[FLAG] = (value & 0x80) >> 7
        v[ins.x] = (value << 1) & 0xFF

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def _op_drw(self, ins: Instruction) -> None:
        v = self.registers.v
        x_pos = v[ins.x]
        y_pos = v[ins.y]
        v[FLAG] = 0
        base = self.registers.index
        rows = [self.memory.load8(base + row) for row in range(ins.n)]
        collided = self.hardware.display.draw_sprite(x_pos, y_pos, rows, clip=self.quirks.clip_sprites)
        v[FLAG] = 1 if collided else 0

    # ------------------------------------------------------------------
    # 0xE family
    # ------------------------------------------------------------------
    def _op_skp(self, ins: Instruction) -> None:
        self._skip_if(self.hardware.keypad.is_pressed(self.registers.v[ins.x]))

    def _op_sknp(self, ins: Instruction) -> None:
        self._skip_if(not self.hardware.keypad.is_pressed(self.registers.v[ins.x]))

    # ------------------------------------------------------------------
    # 0xF family
    # ------------------------------------------------------------------
    def _op_ld_vx_dt(self, ins: Instruction) -> None:
        self.registers.v[ins.x] = self.hardware.timers.delay

    def _op_ld_vx_k(self, ins: Instruction) -> None:
        key = self.hardware.keypad.first_pressed()
        if key is None:
            # Re-run this instruction on the next cycle.
            self.registers.program_counter = (self.registers.program_counter - 2) & 0xFFFF
            return
        self.registers.v[ins.x] = key

    def _op_ld_dt_vx(self, ins: Instruction) -> None:
        self.hardware.timers.set_delay(self.registers.v[ins.x])

    def _op_ld_st_vx(self, ins: Instruction) -> None:
        self.hardware.timers.set_sound(self.registers.v[ins.x])

    def _op_add_i_vx(self, ins: Instruction) -> None:
        regs = self.registers
        regs.index = (regs.index + regs.v[ins.x]) & 0xFFFF

    def _op_ld_f_vx(self, ins: Instruction) -> None:
        self.registers.index = glyph_address(self.registers.v[ins.x])

    def _op_ld_b_vx(self, ins: Instruction) -> None:
        value = self.registers.v[ins.x]
        base = self.registers.index
        self.memory.store8(base, value // 100)
        self.memory.store8(base + 1, (value // 10) % 10)
        self.memory.store8(base + 2, value % 10)

    def _op_ld_i_vx(self, ins: Instruction) -> None:
        base = self.registers.index
        for reg in range(ins.x + 1):
            self.memory.store8(base + reg, self.registers.v[reg])

    def _op_ld_vx_i(self, ins: Instruction) -> None:
        base = self.registers.index
        for reg in range(ins.x + 1):
            self.registers.v[reg] = self.memory.load8(base + reg)

    # ------------------------------------------------------------------
    # State persistence helpers
    # ------------------------------------------------------------------
    def save_state(self, out: dict[str, object]) -> None:
        regs = self.registers
        out["cpu.v"] = list(regs.v)
        out["cpu.index"] = regs.index
        out["cpu.programCounter"] = regs.program_counter
        out["cpu.stack"] = list(regs.stack)
        out["cpu.stackPointer"] = regs.stack_pointer

    @staticmethod
    def parse_state(data: dict[str, object]) -> CPURegisters:
        """Build a register file from a snapshot without touching the CPU."""

        v = [int(value) & 0xFF for value in data.get("cpu.v", [0] * NUM_REGISTERS)]  # type: ignore[union-attr]
        stack = [int(value) & 0xFFFF for value in data.get("cpu.stack", [0] * STACK_DEPTH)]  # type: ignore[union-attr]
        if len(v) != NUM_REGISTERS or len(stack) != STACK_DEPTH:
            raise ValueError("invalid CPU state")
        return CPURegisters(
            v=v,
            index=int(data.get("cpu.index", 0)) & 0xFFFF,  # type: ignore[arg-type]
            program_counter=int(data.get("cpu.programCounter", PROGRAM_START)) & 0xFFFF,  # type: ignore[arg-type]
            stack=stack,
            stack_pointer=int(data.get("cpu.stackPointer", 0)) & STACK_MASK,  # type: ignore[arg-type]
        )
