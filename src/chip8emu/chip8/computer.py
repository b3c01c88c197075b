"""CHIP-8 system wiring."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from chip8emu.chip8.config import EmulatorConfig
from chip8emu.chip8.display import Chip8Display
from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.keyboard import Chip8Keypad
from chip8emu.chip8.sound import Chip8SoundProcessor
from chip8emu.chip8.timers import Chip8Timers
from chip8emu.cpu.cpu import Chip8CPU
from chip8emu.emulator.file import (
    DEMO_NAME,
    DEMO_PROGRAM,
    ProgramInfo,
    load_image,
    read_program_file,
)
from chip8emu.memory import Memory
from chip8emu.system.computer import Computer, TimeManager

logger = logging.getLogger(__name__)


class Chip8Computer(Computer):
    """Concrete CHIP-8 machine: memory, devices and CPU under one owner."""

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        *,
        enable_audio: bool = False,
        time_manager: Optional[TimeManager] = None,
    ) -> None:
        self.config = config if config is not None else EmulatorConfig()
        memory = Memory()
        memory.install_fontset()
        hardware = Chip8Hardware(
            memory=memory,
            display=Chip8Display(),
            keypad=Chip8Keypad(),
            timers=Chip8Timers(),
            sound_processor=Chip8SoundProcessor(enable_audio=enable_audio and self.config.audio),
        )
        super().__init__(
            hardware,
            cpu_frequency=self.config.cpu_frequency,
            timer_frequency=self.config.timer_frequency,
            time_manager=time_manager,
        )
        self.program_info: Optional[ProgramInfo] = None
        self.cpu_core = Chip8CPU(self, quirks=self.config.quirks, seed=self.config.seed)
        self.set_cpu(self.cpu_core)
        self.add_device(hardware.timers)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def memory(self) -> Memory:
        return self.hardware.memory

    @property
    def display(self) -> Chip8Display:
        return self.hardware.display

    @property
    def keypad(self) -> Chip8Keypad:
        return self.hardware.keypad

    @property
    def timers(self) -> Chip8Timers:
        return self.hardware.timers

    @property
    def sound_active(self) -> bool:
        return self.hardware.timers.sound_active

    # ------------------------------------------------------------------
    # Program loading
    # ------------------------------------------------------------------
    def load_program(self, data: bytes, *, name: str = "") -> ProgramInfo:
        info = load_image(self.memory, data, name=name)
        self.program_info = info
        self.cpu_core.registers.program_counter = info.start
        logger.info("loaded %s (%d bytes)", info.name or "program", info.size)
        return info

    def load_program_file(self, path: str | os.PathLike[str]) -> ProgramInfo:
        info = read_program_file(path)
        loaded = self.load_program(info.data, name=info.name)
        loaded.path = info.path
        return loaded

    def load_demo_program(self) -> ProgramInfo:
        return self.load_program(DEMO_PROGRAM, name=DEMO_NAME)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _run_reset(self) -> None:
        memory = self.memory
        memory.clear()
        memory.install_fontset()
        if self.program_info is not None:
            load_image(memory, self.program_info.data, name=self.program_info.name)
        self.hardware.display.clear()
        self.hardware.keypad.clear()
        self.hardware.sound_processor.set_active(False)
        super()._run_reset()

    def on_frame(self) -> None:
        sounding = self.hardware.timers.tick()
        self.hardware.sound_processor.set_active(sounding)
        self.hardware.display.refresh()

    # ------------------------------------------------------------------
    # State persistence helpers
    # ------------------------------------------------------------------
    def save_state(self, out: dict[str, object]) -> None:
        super().save_state(out)
        out["memory"] = list(self.memory.data)
        self.cpu_core.save_state(out)
        self.hardware.timers.save_state(out)
        self.hardware.display.save_state(out)

    def load_state(self, data: dict[str, object]) -> None:
        """Restore a snapshot taken by :meth:`save_state`.

        Every section is validated before anything is written, so a rejected
        snapshot raises ``ValueError`` and leaves the machine untouched. The
        keypad belongs to the host and is released rather than restored.
        """

        if not isinstance(data, Mapping):
            raise ValueError("snapshot must be a mapping")
        try:
            memory = self._parse_memory(data)
            registers = self.cpu_core.parse_state(data)
            delay, sound = self.hardware.timers.parse_state(data)
            pixels = self.hardware.display.parse_state(data)
            machine = self._parse_machine_state(data)
        except TypeError as exc:
            raise ValueError(f"malformed snapshot: {exc}") from exc

        self.memory.data[:] = memory
        self.cpu_core.registers = registers
        self.cpu_core.last_instruction = None
        self.hardware.timers.delay = delay
        self.hardware.timers.sound = sound
        self.hardware.display.pixels = pixels
        self.hardware.keypad.clear()
        self._apply_machine_state(machine)

    def _parse_memory(self, data: Mapping[str, object]) -> bytes:
        memory = data.get("memory")
        if memory is None:
            return bytes(self.memory.data)
        values = bytes(int(value) & 0xFF for value in memory)  # type: ignore[attr-defined]
        if len(values) != self.memory.size:
            raise ValueError("memory image size mismatch")
        return values
