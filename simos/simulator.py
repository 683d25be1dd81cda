"""Whole-system simulation: configuration, loader and CPU threads driven by a timer."""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from simos.cpu import run
from simos.loader import LoaderError, load
from simos.memphy import MemPhy
from simos.mm import MemoryMap
from simos.process import MAX_PRIO, PAGING_MAX_MMSWP, Process
from simos.sched import Scheduler
from simos.timer import Timer, TimerEvent

DEFAULT_INPUT_DIR = "input"


@dataclass(frozen=True)
class ProcessSpec:
    """A process to start: when, from which description file, at what priority."""

    start_time: int
    name: str
    prio: int


@dataclass
class Config:
    """Simulation settings read from a configuration file."""

    time_slot: int
    num_cpus: int
    memram_size: int
    memswp_sizes: tuple[int, ...]
    processes: list[ProcessSpec] = field(default_factory=list)


def _numbers(tokens: Iterator[str]):
    def take(what: str) -> int:
        try:
            token = next(tokens)
        except StopIteration:
            raise ValueError(f"configuration ends before {what}") from None
        try:
            return int(token)
        except ValueError:
            raise ValueError(f"expected a number for {what}, got {token!r}") from None

    return take


def read_config(path: str | Path) -> Config:
    """Parse a configuration file.

    Layout: time slice, CPU count and process count; the RAM size; the
    sizes of the swap devices; then one "start_time name priority" per process.
    """
    tokens = iter(Path(path).read_text().split())
    number = _numbers(tokens)

    time_slot = number("time slot")
    num_cpus = number("number of CPUs")
    num_processes = number("number of processes")
    memram_size = number("RAM size")
    memswp_sizes = tuple(number(f"swap {index} size") for index in range(PAGING_MAX_MMSWP))

    processes: list[ProcessSpec] = []
    for index in range(num_processes):
        start_time = number(f"start time of process {index}")
        try:
            name = next(tokens)
        except StopIteration:
            raise ValueError(f"configuration ends before name of process {index}") from None
        prio = number(f"priority of process {index}")
        if not 0 <= prio < MAX_PRIO:
            raise ValueError(f"priority {prio} of process {index} outside 0..{MAX_PRIO - 1}")
        processes.append(ProcessSpec(start_time, name, prio))

    return Config(time_slot, num_cpus, memram_size, memswp_sizes, processes)


class _Simulation:
    """Shared state of one run: scheduler, memory devices and the clock."""

    def __init__(self, config: Config, processes: list[Process]) -> None:
        self.config = config
        self.processes = processes
        self.scheduler = Scheduler()
        self.timer = Timer()
        self.loaded = threading.Event()
        self.mram = MemPhy(config.memram_size, True)
        self.mswp = [MemPhy(size, True) for size in config.memswp_sizes]

    def cpu_routine(self, cpu_id: int, event: TimerEvent) -> None:
        try:
            self._cpu_loop(cpu_id, event)
        finally:
            event.detach()

    def _cpu_loop(self, cpu_id: int, event: TimerEvent) -> None:
        scheduler = self.scheduler
        time_left = 0
        proc: Process | None = None
        while True:
            if proc is None:
                proc = scheduler.get_proc()
                if proc is None:
                    if self.loaded.is_set():
                        print(f"\tCPU {cpu_id} stopped")
                        return
                    event.next_slot()
                    continue
            elif proc.finished:
                print(f"\tCPU {cpu_id}: Processed {proc.pid:2d} has finished")
                proc = scheduler.get_proc()
                time_left = 0
            elif time_left == 0:
                print(f"\tCPU {cpu_id}: Put process {proc.pid:2d} to run queue")
                scheduler.put_proc(proc)
                proc = scheduler.get_proc()

            if proc is None and self.loaded.is_set():
                print(f"\tCPU {cpu_id} stopped")
                return
            if proc is None:
                event.next_slot()
                continue
            if time_left == 0:
                print(f"\tCPU {cpu_id}: Dispatched process {proc.pid:2d}")
                time_left = self.config.time_slot

            try:
                run(proc)
            except (ValueError, LookupError, MemoryError) as exc:
                print(f"\tCPU {cpu_id}: process {proc.pid:2d} fault: {exc}")
            time_left -= 1
            event.next_slot()

    def loader_routine(self, event: TimerEvent) -> None:
        try:
            print("ld_routine")
            for spec, proc in zip(self.config.processes, self.processes):
                while self.timer.current_time() < spec.start_time:
                    event.next_slot()
                proc.mm = MemoryMap()
                proc.mram = self.mram
                proc.mswp = self.mswp
                proc.active_mswp = self.mswp[0] if self.mswp else None
                proc.active_mswp_id = 0
                print(f"\tLoaded a process at {proc.path}, PID: {proc.pid} PRIO: {spec.prio}")
                self.scheduler.add_proc(proc)
                event.next_slot()
        finally:
            self.loaded.set()
            event.detach()


def run_simulation(config: Config, base_dir: str | Path = DEFAULT_INPUT_DIR) -> list[Process]:
    """Run every configured process to completion; return them in load order.

    Process descriptions are read from base_dir/proc/<name> before the clock starts.
    """
    proc_dir = Path(base_dir) / "proc"
    processes: list[Process] = []
    for spec in config.processes:
        proc = load(proc_dir / spec.name)
        proc.prio = spec.prio
        processes.append(proc)

    sim = _Simulation(config, processes)
    cpu_events = [sim.timer.attach_event() for _ in range(config.num_cpus)]
    ld_event = sim.timer.attach_event()
    sim.timer.start()

    loader = threading.Thread(target=sim.loader_routine, args=(ld_event,), name="loader")
    cpus = [
        threading.Thread(target=sim.cpu_routine, args=(cpu_id, event), name=f"cpu-{cpu_id}")
        for cpu_id, event in enumerate(cpu_events)
    ]
    loader.start()
    for thread in cpus:
        thread.start()
    for thread in cpus:
        thread.join()
    loader.join()
    sim.timer.stop()
    return processes


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point: simulate the configuration input/<argv[0]>."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("Usage: simos [path to configure file]")
        return 1
    input_dir = Path(DEFAULT_INPUT_DIR)
    path = input_dir / args[0]
    try:
        config = read_config(path)
    except OSError:
        print(f"Cannot find configure file at {path}")
        return 1
    except ValueError as exc:
        print(f"Invalid configure file {path}: {exc}")
        return 1
    try:
        run_simulation(config, input_dir)
    except LoaderError as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())