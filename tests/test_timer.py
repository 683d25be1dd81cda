import threading

import pytest

from simos.timer import Timer


def _worker(timer, event, slots, seen):
    for _ in range(slots):
        event.next_slot()
        seen.append(timer.current_time())
    event.detach()


def _run_devices(slot_counts):
    output = []
    timer = Timer(output=output.append)
    events = [timer.attach_event() for _ in slot_counts]
    seen = [[] for _ in slot_counts]
    timer.start()
    threads = [
        threading.Thread(target=_worker, args=(timer, ev, n, s))
        for ev, n, s in zip(events, slot_counts, seen)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    timer.stop()
    return timer, output, seen


def test_each_slot_advances_time_by_one():
    timer, output, seen = _run_devices([3, 3])
    assert seen == [[1, 2, 3], [1, 2, 3]]
    assert timer.current_time() == 4
    assert len(output) == timer.current_time()


def test_timer_waits_for_slowest_device():
    timer, _, seen = _run_devices([1, 3])
    assert seen[1] == [1, 2, 3]
    assert timer.current_time() == len(seen[1]) + 1


def test_slot_log_format():
    _, output, _ = _run_devices([1])
    assert output[0] == "Time slot   0"


def test_attach_after_start_is_rejected():
    timer = Timer(output=lambda line: None)
    event = timer.attach_event()
    timer.start()
    with pytest.raises(RuntimeError):
        timer.attach_event()
    event.detach()
    timer.stop()
    assert timer.current_time() >= 1