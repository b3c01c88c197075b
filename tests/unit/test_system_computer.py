"""Host scheduler: instruction and frame cadences on a fake clock."""

from __future__ import annotations

import pytest

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.config import EmulatorConfig
from chip8emu.system.computer import NANOSECONDS, Computer, TimeManager


class FakeClock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


def make_computer(cpu_frequency: float = 500.0) -> tuple[Chip8Computer, FakeClock]:
    clock = FakeClock()
    config = EmulatorConfig(cpu_frequency=cpu_frequency, audio=False, seed=1)
    computer = Chip8Computer(config, time_manager=TimeManager(clock))
    computer.load_program(bytes([0x12, 0x00]))
    return computer, clock


def test_advance_runs_both_cadences() -> None:
    computer, _clock = make_computer()
    computer.power_on()
    assert computer._event_queue.names() == ["cpu.cycle", "frame"]

    executed = computer.advance(100_000_000)

    assert executed == 50
    assert computer.clock_count == 50
    assert computer.frame_count == 6


def test_timers_are_independent_of_instruction_rate() -> None:
    results = []
    for frequency in (500.0, 2000.0):
        computer, _clock = make_computer(frequency)
        computer.power_on()
        computer.timers.set_delay(10)
        computer.advance(100_000_000)
        results.append((computer.clock_count, computer.timers.delay))

    assert results == [(50, 4), (200, 4)]


def test_advance_uses_time_manager_clock() -> None:
    computer, clock = make_computer()
    computer.power_on()

    clock.now = 10_000_000
    assert computer.advance() == 5


def test_falling_behind_realigns_instead_of_replaying() -> None:
    computer, _clock = make_computer()
    computer.power_on()

    executed = computer.advance(10 * NANOSECONDS)

    assert executed == 2
    assert computer.frame_count == 2


def test_frame_drives_sound_signal_and_presenter() -> None:
    computer, _clock = make_computer()
    frames: list[int] = []
    computer.display.set_presenter(lambda display: frames.append(display.frame_count))
    computer.power_on()
    computer.timers.set_sound(2)

    computer.advance(20_000_000)
    assert computer.hardware.sound_processor.active is True
    computer.advance(50_000_000)

    assert computer.hardware.sound_processor.active is False
    assert computer.timers.sound == 0
    assert frames == [1, 2, 3]


def test_pause_and_resume() -> None:
    computer, clock = make_computer()
    computer.power_on()
    computer.pause()

    assert computer.advance(100_000_000) == 0
    assert computer.get_running_status() == Chip8Computer.STATUS_PAUSED

    clock.now = 100_000_000
    computer.toggle_pause()
    assert computer.advance(104_000_000) == 2


def test_power_off_stops_scheduling() -> None:
    computer, _clock = make_computer()
    computer.power_on()
    computer.power_off()

    assert computer.advance(100_000_000) == 0
    assert computer.get_running_status() == Chip8Computer.STATUS_STOPPED


def test_tick_runs_instructions_without_timers() -> None:
    computer, _clock = make_computer()
    computer.timers.set_delay(5)

    computer.tick(300)

    assert computer.clock_count == 300
    assert computer.timers.delay == 5


@pytest.mark.parametrize("rates", [{"cpu_frequency": 0}, {"timer_frequency": -60}])
def test_frequencies_must_be_positive(rates: dict) -> None:
    with pytest.raises(ValueError):
        Computer(object(), **rates)
