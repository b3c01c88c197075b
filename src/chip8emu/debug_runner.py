"""Headless runner for CHIP-8 program debugging workflows."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
import logging
import sys
from pathlib import Path
from typing import List, Sequence, Tuple

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.config import resolve_config
from chip8emu.chip8.keyboard import NUM_KEYS
from chip8emu.cpu.disassembler import disassemble
from chip8emu.emulator.file import ProgramLoadError
from chip8emu.memory import ADDRESS_MASK

logger = logging.getLogger(__name__)

DEFAULT_MAX_CYCLES = 10_000


@dataclass(frozen=True)
class DumpRange:
    """Inclusive memory range used for dumping."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def _parse_hex(value: str, *, limit: int = ADDRESS_MASK) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        raise ValueError("empty hexadecimal value")
    result = int(text, 16)
    if not (0 <= result <= limit):
        raise ValueError("hex value out of range")
    return result


def _parse_range(spec: str) -> DumpRange:
    start_str, sep, end_str = spec.partition(":")
    if not sep:
        raise ValueError("range specification must contain ':'")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def _merge_ranges(ranges: Sequence[DumpRange]) -> List[DumpRange]:
    if not ranges:
        return [DumpRange(0x000, ADDRESS_MASK)]
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    merged: List[DumpRange] = []
    for current in ordered:
        if merged and current.start <= merged[-1].end + 1:
            last = merged[-1]
            merged[-1] = DumpRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def _format_hex_dump(memory, dump_ranges: Sequence[DumpRange]) -> str:
    """Render 16-byte rows with a printable-ASCII column, one block per range."""

    blocks: List[str] = []
    for dump_range in dump_ranges:
        lines = ["ADDR  " + " ".join(f"{offset:02X}" for offset in range(16))]
        for base in range(dump_range.start & ~0x0F, (dump_range.end | 0x0F) + 1, 16):
            chunk = memory.read_block(base, 16)
            text = "".join(chr(value) if 0x20 <= value < 0x7F else "." for value in chunk)
            lines.append(f"{base:03X}:  {chunk.hex(' ').upper()}  |{text}|")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _write_dump(memory, dump_ranges: Sequence[DumpRange], *, target: Path | None, fmt: str) -> None:
    ranges = _merge_ranges(dump_ranges)
    if fmt == "bin":
        payload = b"".join(memory.read_block(r.start, r.length) for r in ranges)
        if target is None:
            sys.stdout.buffer.write(payload)
        else:
            target.write_bytes(payload)
        return

    text = _format_hex_dump(memory, ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _format_registers(computer: Chip8Computer) -> str:
    regs = computer.cpu_core.registers
    timers = computer.timers
    v_text = " ".join(f"V{index:X}={value:02X}" for index, value in enumerate(regs.v))
    return (
        f"PC={regs.program_counter:03X} I={regs.index:03X} SP={regs.stack_pointer:X} "
        f"DT={timers.delay:02X} ST={timers.sound:02X}\n{v_text}"
    )


def _execute_program(
    computer: Chip8Computer,
    *,
    max_cycles: int | None,
    breakpoints: Sequence[int],
    cycles_per_frame: int,
    trace: bool = False,
) -> Tuple[int, bool]:
    """Step the CPU, servicing a frame every ``cycles_per_frame`` instructions.

    Returns the number of instructions executed and whether a breakpoint
    stopped the run.
    """

    cpu = computer.cpu_core
    break_set = {value & ADDRESS_MASK for value in breakpoints}
    executed = 0
    while max_cycles is None or executed < max_cycles:
        address = cpu.registers.program_counter
        instruction = cpu.step()
        executed += 1
        if trace:
            print(f"{address:03X}: {instruction}  {disassemble(instruction, cpu.quirks)}")
        if executed % cycles_per_frame == 0:
            computer.frame_count += 1
            computer.on_frame()
        if cpu.registers.program_counter in break_set:
            return executed, True
    return executed, False


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8emu-debug",
        description="Headless CHIP-8 runner for program diagnostics.",
    )
    parser.add_argument("program", nargs="?", default=None, help="Raw program image (defaults to the built-in demo)")
    parser.add_argument("--config", type=str, default=None, help="JSON configuration file")
    parser.add_argument(
        "--cycles",
        type=int,
        default=DEFAULT_MAX_CYCLES,
        help="Maximum instructions to execute (0 or negative disables the limit)",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Stop when PC reaches the given hex address (repeatable)",
    )
    parser.add_argument(
        "--key",
        action="append",
        default=[],
        help="Hold the given hex keypad key down for the whole run (repeatable)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument("--trace", action="store_true", help="Print each executed instruction")
    parser.add_argument("--debug-memory", action="store_true", help="Log every memory access at debug level")
    parser.add_argument("--screen", action="store_true", help="Print the framebuffer as text after the run")
    parser.add_argument("--dump", type=str, default=None, help="File path for memory dump (defaults to stdout)")
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help="Memory range to dump in START:END hex form (inclusive). Repeat to add multiple ranges.",
    )
    parser.add_argument(
        "--dump-format",
        choices=("hex", "bin", "none"),
        default="none",
        help="Dump format (hex table, raw binary, or no dump)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug_memory else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    breakpoints: List[int] = []
    for spec in args.break_pc:
        try:
            breakpoints.append(_parse_hex(spec))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{spec}': {exc}")

    keys: List[int] = []
    for spec in args.key:
        try:
            keys.append(_parse_hex(spec, limit=0xF))
        except ValueError as exc:
            parser.error(f"invalid key '{spec}': {exc}")

    dump_ranges: List[DumpRange] = []
    for spec in args.dump_range:
        try:
            dump_ranges.append(_parse_range(spec))
        except ValueError as exc:
            parser.error(f"invalid dump range '{spec}': {exc}")

    try:
        config = resolve_config(args.config)
    except (OSError, ValueError) as exc:
        parser.error(f"invalid configuration: {exc}")
    if args.seed is not None:
        config = replace(config, seed=args.seed)

    computer = Chip8Computer(config)
    computer.memory.enable_debug(args.debug_memory)
    try:
        if args.program:
            computer.load_program_file(args.program)
        else:
            computer.load_demo_program()
    except ProgramLoadError as exc:
        print(f"Failed to load program: {exc}", file=sys.stderr)
        return 1

    computer.keypad.set_state(index in keys for index in range(NUM_KEYS))

    cycles_per_frame = max(1, round(config.cpu_frequency / config.timer_frequency))
    cycle_limit = args.cycles if args.cycles > 0 else None
    executed, break_hit = _execute_program(
        computer,
        max_cycles=cycle_limit,
        breakpoints=breakpoints,
        cycles_per_frame=cycles_per_frame,
        trace=args.trace,
    )

    if args.screen:
        print(computer.display.render_text())
    if args.dump_format != "none":
        dump_target = Path(args.dump) if args.dump is not None else None
        _write_dump(computer.memory, dump_ranges, target=dump_target, fmt=args.dump_format)

    reason = "breakpoint" if break_hit else "cycle limit"
    print(f"Stopped after {executed} instructions ({reason})", file=sys.stderr)
    print(_format_registers(computer), file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
