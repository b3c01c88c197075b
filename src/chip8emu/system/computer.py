"""Computer scaffold providing real-time scheduling and control utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import logging
import time
from typing import Callable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from chip8emu.chip8.hardware import Chip8Hardware
else:  # pragma: no cover - used for runtime only
    Chip8Hardware = object

logger = logging.getLogger(__name__)

NANOSECONDS = 1_000_000_000
MAX_CATCH_UP_NS = 250_000_000


class TimeManager:
    """Host monotonic clock used to pace the emulation."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock if clock is not None else time.perf_counter_ns

    def now(self) -> int:
        return self._clock()


@dataclass(order=True)
class _ComputerEvent:
    time_ns: int
    order: int
    handler: Callable[["Computer", int], None] = field(compare=False)
    name: str = field(default="", compare=False)

    def apply(self, computer: "Computer") -> None:
        self.handler(computer, self.time_ns)


class EventQueue:
    """Priority queue of events keyed by host timestamp."""

    def __init__(self) -> None:
        self._heap: List[_ComputerEvent] = []

    def add(self, event: _ComputerEvent) -> None:
        heapq.heappush(self._heap, event)

    def pop_next(self, now_ns: int) -> Optional[_ComputerEvent]:
        if self._heap and self._heap[0].time_ns <= now_ns:
            return heapq.heappop(self._heap)
        return None

    def names(self) -> List[str]:
        return [event.name for event in sorted(self._heap)]

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)


class Computer:
    """Host machine tying together hardware, CPU and periodic devices.

    Two independent cadences are scheduled on host time: one instruction
    per ``1 / cpu_frequency`` seconds, and one frame (timer decrement,
    sound signal, display refresh) per ``1 / timer_frequency`` seconds.
    """

    STATUS_RUNNING = 0
    STATUS_PAUSED = 1
    STATUS_STOPPED = 2

    def __init__(
        self,
        hardware: Chip8Hardware,
        *,
        cpu_frequency: float = 500.0,
        timer_frequency: float = 60.0,
        time_manager: Optional[TimeManager] = None,
    ) -> None:
        self.hardware = hardware
        self.clock_count: int = 0
        self.frame_count: int = 0
        self._devices: list[object] = []
        self._cpu: Optional[object] = None
        self._running_status: int = self.STATUS_STOPPED
        self._event_queue = EventQueue()
        self._event_counter = 0
        self._time_manager = time_manager if time_manager is not None else TimeManager()
        self.cpu_frequency = cpu_frequency
        self.timer_frequency = timer_frequency
        self._cycle_period_ns = self._period_ns(cpu_frequency)
        self._frame_period_ns = self._period_ns(timer_frequency)
        self.now_ns: int = self._time_manager.now()
        self._horizon_ns: int = self.now_ns

    @staticmethod
    def _period_ns(frequency: float) -> int:
        if frequency <= 0:
            raise ValueError("frequency must be positive")
        return max(1, int(NANOSECONDS / frequency))

    # ------------------------------------------------------------------
    # CPU integration
    # ------------------------------------------------------------------
    def set_cpu(self, cpu: object) -> None:
        self._cpu = cpu
        if hasattr(cpu, "computer"):
            setattr(cpu, "computer", self)

    def tick(self, cycles: int) -> None:
        """Execute ``cycles`` instructions immediately, without touching timers."""

        if cycles <= 0:
            return
        if self._cpu is not None:
            self._cpu.execute(cycles)
        else:
            self.clock_count += cycles

    # ------------------------------------------------------------------
    # Device management
    # ------------------------------------------------------------------
    def add_device(self, device: object) -> None:
        self._devices.append(device)
        if hasattr(device, "computer"):
            setattr(device, "computer", self)

    # ------------------------------------------------------------------
    # Control lifecycle
    # ------------------------------------------------------------------
    def power_on(self) -> None:
        self._run_reset()
        self._running_status = self.STATUS_RUNNING
        self._start_periodic_tasks()

    def power_off(self) -> None:
        if self._running_status == self.STATUS_STOPPED:
            return
        self._running_status = self.STATUS_STOPPED
        self._event_queue.clear()

    def reset(self) -> None:
        self._run_reset()
        if self._running_status == self.STATUS_RUNNING:
            self._start_periodic_tasks()

    def pause(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self._running_status = self.STATUS_PAUSED
        self._event_queue.clear()

    def resume(self) -> None:
        if self._running_status != self.STATUS_PAUSED:
            return
        self._running_status = self.STATUS_RUNNING
        self._start_periodic_tasks()

    def toggle_pause(self) -> None:
        if self._running_status == self.STATUS_RUNNING:
            self.pause()
        else:
            self.resume()

    def get_running_status(self) -> int:
        return self._running_status

    # ------------------------------------------------------------------
    # Real-time scheduling
    # ------------------------------------------------------------------
    def advance(self, now_ns: Optional[int] = None) -> int:
        """Run every event due at ``now_ns`` (host clock when omitted).

        Returns the number of instructions executed.
        """

        now = self._time_manager.now() if now_ns is None else now_ns
        start_clock = self.clock_count
        self._horizon_ns = now
        while self._running_status == self.STATUS_RUNNING:
            event = self._event_queue.pop_next(now)
            if event is None:
                break
            self.now_ns = event.time_ns
            event.apply(self)
        self.now_ns = max(self.now_ns, now)
        return self.clock_count - start_clock

    def _schedule_event(self, handler: Callable[["Computer", int], None], at_ns: int, *, name: str = "") -> None:
        event = _ComputerEvent(at_ns, self._event_counter, handler, name)
        self._event_counter += 1
        self._event_queue.add(event)

    def _reschedule(self, handler: Callable[["Computer", int], None], fired_at: int, period: int, name: str) -> None:
        next_time = fired_at + period
        horizon = self._horizon_ns
        if next_time < horizon - MAX_CATCH_UP_NS:
            logger.debug("%s fell behind by %d ns; realigning", name, horizon - next_time)
            next_time = horizon
        self._schedule_event(handler, next_time, name=name)

    def _run_reset(self) -> None:
        self._event_queue.clear()
        self.clock_count = 0
        self.frame_count = 0
        self.now_ns = self._time_manager.now()
        if self._cpu is not None and hasattr(self._cpu, "reset"):
            self._cpu.reset()
        for device in self._devices:
            if hasattr(device, "reset"):
                device.reset()

    def _start_periodic_tasks(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self._event_queue.clear()
        start = self._time_manager.now()
        self.now_ns = start
        self._schedule_event(Computer._cycle_event, start + self._cycle_period_ns, name="cpu.cycle")
        self._schedule_event(Computer._frame_event, start + self._frame_period_ns, name="frame")

    @staticmethod
    def _cycle_event(comp: "Computer", fired_at: int) -> None:
        comp.tick(1)
        comp._reschedule(Computer._cycle_event, fired_at, comp._cycle_period_ns, "cpu.cycle")

    @staticmethod
    def _frame_event(comp: "Computer", fired_at: int) -> None:
        comp.frame_count += 1
        comp.on_frame()
        comp._reschedule(Computer._frame_event, fired_at, comp._frame_period_ns, "frame")

    def on_frame(self) -> None:
        """Service the frame-rate devices; overridden by concrete machines."""

        display = getattr(self.hardware, "display", None)
        if display is not None and hasattr(display, "refresh"):
            display.refresh()

    # ------------------------------------------------------------------
    # State persistence helpers
    # ------------------------------------------------------------------
    def save_state(self, out: dict[str, object]) -> None:
        out["computer.clockCount"] = int(self.clock_count)
        out["computer.frameCount"] = int(self.frame_count)
        out["computer.runningStatus"] = int(self._running_status)

    def _parse_machine_state(self, data: dict[str, object]) -> tuple[int, int, int]:
        clock_count = int(data.get("computer.clockCount", 0))  # type: ignore[arg-type]
        frame_count = int(data.get("computer.frameCount", 0))  # type: ignore[arg-type]
        status = int(data.get("computer.runningStatus", self.STATUS_STOPPED))  # type: ignore[arg-type]
        if status not in (self.STATUS_RUNNING, self.STATUS_PAUSED, self.STATUS_STOPPED):
            raise ValueError("invalid status")
        return clock_count, frame_count, status

    def _apply_machine_state(self, state: tuple[int, int, int]) -> None:
        self.clock_count, self.frame_count, status = state
        self._running_status = status
        self._event_queue.clear()
        if status == self.STATUS_RUNNING:
            self._start_periodic_tasks()
