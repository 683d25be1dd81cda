"""Discrete time-slot clock that steps once every attached device is done."""

from __future__ import annotations

import threading
from collections.abc import Callable


class TimerEvent:
    """Handle a device uses to synchronise with the timer."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self.done = False
        self.finished = False

    def next_slot(self) -> None:
        """Report this slot's work done and block until the next slot."""
        with self._cond:
            self.done = True
            self._cond.notify_all()
            while self.done:
                self._cond.wait()

    def detach(self) -> None:
        """Tell the timer this device has no more work."""
        with self._cond:
            self.finished = True
            self._cond.notify_all()

    def _wait_for_slot_end(self) -> bool:
        with self._cond:
            while not self.done and not self.finished:
                self._cond.wait()
            return self.finished

    def _release(self) -> None:
        with self._cond:
            self.done = False
            self._cond.notify_all()


class Timer:
    """Clock thread that advances when all attached events finish a slot."""

    def __init__(self, output: Callable[[str], object] = print) -> None:
        self._events: list[TimerEvent] = []
        self._time = 0
        self._started = False
        self._stopping = False
        self._thread: threading.Thread | None = None
        self._output = output

    def attach_event(self) -> TimerEvent:
        """Register a new device; only allowed before the timer starts."""
        if self._started:
            raise RuntimeError("cannot attach an event to a running timer")
        event = TimerEvent()
        self._events.insert(0, event)
        return event

    def start(self) -> None:
        self._started = True
        self._thread = threading.Thread(target=self._run, name="timer", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopping:
            self._output(f"Time slot {self._time:3d}")
            finished = sum(event._wait_for_slot_end() for event in self._events)
            self._time += 1
            for event in self._events:
                event._release()
            if finished == len(self._events):
                break

    def stop(self) -> None:
        """Wait for the clock thread to end and drop all events."""
        self._stopping = True
        if self._thread is not None:
            self._thread.join()
        self._events.clear()

    def current_time(self) -> int:
        return self._time