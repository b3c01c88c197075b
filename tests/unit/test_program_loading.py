"""Raw program loading and the machine-level load/reset/state paths."""

from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.config import EmulatorConfig
from chip8emu.emulator.file import (
    DEMO_PROGRAM,
    MAX_PROGRAM_LENGTH,
    ProgramLoadError,
    load_image,
    read_program_file,
)
from chip8emu.memory import FONT_START, FONTSET, Memory


def test_load_image_copies_to_program_start() -> None:
    memory = Memory()

    info = load_image(memory, b"\x60\x05\x12\x00", name="TINY")

    assert memory.read_block(0x200, 4) == b"\x60\x05\x12\x00"
    assert info.size == 4
    assert info.start == 0x200
    assert info.end == 0x203


def test_load_image_accepts_exact_fit_and_rejects_overflow() -> None:
    memory = Memory()
    load_image(memory, bytes([0xAA]) * MAX_PROGRAM_LENGTH)
    assert memory.load8(0xFFF) == 0xAA

    with pytest.raises(ProgramLoadError):
        load_image(memory, bytes(MAX_PROGRAM_LENGTH + 1))


def test_read_program_file(tmp_path: Path) -> None:
    path = tmp_path / "pong.ch8"
    path.write_bytes(b"\x00\xe0")

    info = read_program_file(path)

    assert info.name == "PONG"
    assert info.path == path
    assert info.data == b"\x00\xe0"


@pytest.mark.parametrize("content", [None, b"", bytes(MAX_PROGRAM_LENGTH + 2)])
def test_read_program_file_errors(tmp_path: Path, content: bytes | None) -> None:
    path = tmp_path / "broken.ch8"
    if content is not None:
        path.write_bytes(content)

    with pytest.raises(ProgramLoadError):
        read_program_file(path)


def test_computer_load_program_file_sets_pc(tmp_path: Path) -> None:
    path = tmp_path / "maze.rom"
    path.write_bytes(b"\x12\x00")
    computer = Chip8Computer(EmulatorConfig(audio=False))
    computer.cpu_core.registers.program_counter = 0x400

    info = computer.load_program_file(path)

    assert info.path == path
    assert computer.cpu_core.registers.program_counter == 0x200
    assert computer.program_info is info


def test_reset_reloads_program_and_clears_machine() -> None:
    computer = Chip8Computer(EmulatorConfig(audio=False, seed=3))
    computer.load_demo_program()
    computer.tick(60)
    computer.memory.store8(0x210, 0x00)
    computer.memory.store8(FONT_START, 0x00)
    computer.timers.set_delay(9)
    computer.keypad.press(4)

    computer.reset()

    regs = computer.cpu_core.registers
    assert regs.program_counter == 0x200
    assert regs.v == [0] * 16
    assert computer.memory.read_block(0x200, len(DEMO_PROGRAM)) == DEMO_PROGRAM
    assert computer.memory.read_block(FONT_START, len(FONTSET)) == bytes(FONTSET)
    assert not any(computer.display.pixels)
    assert computer.timers.delay == 0
    assert computer.keypad.first_pressed() is None
    assert computer.clock_count == 0


def test_state_snapshot_survives_json() -> None:
    computer = Chip8Computer(EmulatorConfig(audio=False, seed=3))
    computer.load_demo_program()
    computer.tick(40)
    computer.timers.set_sound(7)
    computer.keypad.press(2)
    state: dict[str, object] = {}
    computer.save_state(state)

    restored = Chip8Computer(EmulatorConfig(audio=False))
    restored.load_state(json.loads(json.dumps(state)))

    assert restored.cpu_core.registers == computer.cpu_core.registers
    assert restored.memory.data == computer.memory.data
    assert restored.display.pixels == computer.display.pixels
    assert restored.timers.sound == 7
    assert restored.clock_count == 40
    assert "keypad" not in state


def test_load_state_rejects_wrong_memory_size() -> None:
    computer = Chip8Computer(EmulatorConfig(audio=False))
    with pytest.raises(ValueError):
        computer.load_state({"memory": [0] * 16})


def test_load_state_releases_held_keys() -> None:
    computer = Chip8Computer(EmulatorConfig(audio=False))
    state: dict[str, object] = {}
    computer.save_state(state)
    computer.keypad.press(0xA)

    computer.load_state(state)

    assert computer.keypad.first_pressed() is None


@pytest.mark.parametrize(
    "corrupt",
    [
        {"cpu.v": [0] * 15},
        {"cpu.stack": None},
        {"display.pixels": [0] * 10},
        {"timers.delay": [1]},
        {"computer.runningStatus": 9},
    ],
)
def test_rejected_snapshot_leaves_machine_untouched(corrupt: dict) -> None:
    computer = Chip8Computer(EmulatorConfig(audio=False, seed=3))
    computer.load_demo_program()
    computer.tick(40)
    state: dict[str, object] = {}
    computer.save_state(state)
    state["memory"] = [0xAA] * len(computer.memory.data)
    state.update(corrupt)
    memory_before = bytes(computer.memory.data)
    registers_before = copy.deepcopy(computer.cpu_core.registers)
    pixels_before = list(computer.display.pixels)

    with pytest.raises(ValueError):
        computer.load_state(state)

    assert bytes(computer.memory.data) == memory_before
    assert computer.cpu_core.registers == registers_before
    assert computer.display.pixels == pixels_before
    assert computer.clock_count == 40


def test_load_state_rejects_non_mapping() -> None:
    computer = Chip8Computer(EmulatorConfig(audio=False))
    with pytest.raises(ValueError):
        computer.load_state([1, 2, 3])  # type: ignore[arg-type]
