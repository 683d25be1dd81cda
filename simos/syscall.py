"""System call table, dispatch and the process-level system calls."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from simos.libmem import libfree, libread
from simos.process import Process
from simos.queue import ProcessQueue
from simos.sysmem import SyscallRegs, memmap

_MAX_NAME_LEN = 100

Handler = Callable[[Process, SyscallRegs], object]


def sys_ni_syscall(caller: Process, regs: SyscallRegs) -> None:
    """Placeholder handler for numbers with no system call."""
    return None


def _read_name(caller: Process, memrg: int) -> str:
    chars: list[str] = []
    for offset in range(_MAX_NAME_LEN):
        data = libread(caller, memrg, offset)
        if data == -1:
            break
        chars.append(chr(data & 0xFF))
    return "".join(chars).split("\0", 1)[0]


def _sweep(queue: ProcessQueue, name: str) -> list[Process]:
    killed: list[Process] = []
    kept: list[Process] = []
    reg_idx = 0
    while not queue.empty():
        proc = queue.dequeue()
        if proc.path == name:
            libfree(proc, reg_idx)
            killed.append(proc)
        else:
            kept.append(proc)
        reg_idx += 1
    for proc in kept:
        queue.enqueue(proc)
    return killed


def sys_killall(caller: Process, regs: SyscallRegs) -> list[Process]:
    """Remove every queued process whose path equals the name held in region regs.a1.

    The name is read byte by byte from the caller's region until a byte of -1.
    Returns the processes that were removed.
    """
    memrg = regs.a1
    name = _read_name(caller, memrg)
    print(f'The procname retrieved from memregionid {memrg} is "{name}"')

    killed: list[Process] = []
    if caller.running_list is not None:
        killed.extend(_sweep(caller.running_list, name))
    levels: Iterable[ProcessQueue] = caller.mlq_ready_queue or ()
    for level in levels:
        killed.extend(_sweep(level, name))
    return killed


def sys_listsyscall(caller: Process, regs: SyscallRegs) -> None:
    """Print every entry of the system call table."""
    for entry in SYSCALL_TABLE:
        print(entry)


def sys_memmap(caller: Process, regs: SyscallRegs) -> None:
    """Memory management system call."""
    memmap(caller, regs)


_HANDLERS: dict[int, tuple[str, Handler]] = {
    0: ("sys_listsyscall", sys_listsyscall),
    17: ("sys_memmap", sys_memmap),
    101: ("sys_killall", sys_killall),
}

SYSCALL_TABLE: tuple[str, ...] = tuple(
    f"{nr}-{name}" for nr, (name, _) in sorted(_HANDLERS.items())
)


def syscall(caller: Process, nr: int, regs: SyscallRegs) -> object:
    """Dispatch system call nr; unknown numbers go to sys_ni_syscall."""
    entry = _HANDLERS.get(nr)
    handler = entry[1] if entry is not None else sys_ni_syscall
    return handler(caller, regs)


def libsyscall(caller: Process, syscall_idx: int, a1: int, a2: int, a3: int) -> object:
    """Pack three arguments into registers and invoke system call syscall_idx."""
    return syscall(caller, syscall_idx, SyscallRegs(a1=a1, a2=a2, a3=a3))