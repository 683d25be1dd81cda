"""Multi-level queue scheduler."""

from __future__ import annotations

import threading

from simos.process import MAX_PRIO, Process
from simos.queue import ProcessQueue


class Scheduler:
    """Multi-level ready queues where level p may serve MAX_PRIO - p processes per round."""

    def __init__(self) -> None:
        self.ready_queue = ProcessQueue()
        self.run_queue = ProcessQueue()
        self.running_list = ProcessQueue()
        self.mlq_ready_queue = [ProcessQueue() for _ in range(MAX_PRIO)]
        self.slot = self._full_slots()
        self._last_queue = 0
        self._lock = threading.Lock()

    @staticmethod
    def _full_slots() -> list[int]:
        return [MAX_PRIO - prio for prio in range(MAX_PRIO)]

    def queue_empty(self) -> bool:
        """True when no process waits in any ready queue."""
        with self._lock:
            return (
                all(level.empty() for level in self.mlq_ready_queue)
                and self.ready_queue.empty()
                and self.run_queue.empty()
            )

    def get_proc(self) -> Process | None:
        """Next process to run, or None; a fruitless search refills every level's slots."""
        with self._lock:
            for step in range(MAX_PRIO):
                prio = (self._last_queue + step) % MAX_PRIO
                level = self.mlq_ready_queue[prio]
                if not level.empty() and self.slot[prio] > 0:
                    self.slot[prio] -= 1
                    self._last_queue = prio
                    return level.dequeue()
            self.slot = self._full_slots()
            return None

    def _enlist(self, proc: Process) -> None:
        if not 0 <= proc.prio < MAX_PRIO:
            raise ValueError(f"priority {proc.prio} outside 0..{MAX_PRIO - 1}")
        proc.ready_queue = self.ready_queue
        proc.mlq_ready_queue = self.mlq_ready_queue
        proc.running_list = self.running_list
        with self._lock:
            self.running_list.enqueue(proc)
            self.mlq_ready_queue[proc.prio].enqueue(proc)

    def put_proc(self, proc: Process) -> None:
        """Return a process that used up its time slice to its ready queue."""
        self._enlist(proc)

    def add_proc(self, proc: Process) -> None:
        """Admit a newly loaded process."""
        self._enlist(proc)