from simos.process import Process
from simos.queue import MAX_QUEUE_SIZE, ProcessQueue


def test_new_queue_is_empty():
    q = ProcessQueue()
    assert q.empty()
    assert len(q) == 0
    assert q.dequeue() is None


def test_fifo_order():
    q = ProcessQueue()
    procs = [Process(pid=i) for i in range(1, 4)]
    for proc in procs:
        q.enqueue(proc)
    assert [q.dequeue() for _ in procs] == procs
    assert q.empty()


def test_full_queue_drops_new_process():
    q = ProcessQueue()
    procs = [Process(pid=i) for i in range(MAX_QUEUE_SIZE + 1)]
    for proc in procs:
        q.enqueue(proc)
    assert len(q) == MAX_QUEUE_SIZE
    assert list(q) == procs[:MAX_QUEUE_SIZE]


def test_dequeue_frees_a_slot():
    q = ProcessQueue()
    for i in range(MAX_QUEUE_SIZE):
        q.enqueue(Process(pid=i))
    first = q.dequeue()
    late = Process(pid=99)
    q.enqueue(late)
    assert first.pid == 0
    assert list(q)[-1] is late