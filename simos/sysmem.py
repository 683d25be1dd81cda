"""Memory system call: map, grow, swap and raw RAM input/output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from simos.mm import inc_vma_limit, mm_swap_page
from simos.process import Process


class MemOp(IntEnum):
    """Operations selected by the first register of the memory syscall."""

    MAP = 1
    INC = 2
    SWP = 3
    IO_READ = 4
    IO_WRITE = 5


@dataclass
class SyscallRegs:
    """Argument registers passed to a system call; handlers may write results back."""

    a1: int = 0
    a2: int = 0
    a3: int = 0
    a4: int = 0
    a5: int = 0
    a6: int = 0
    orig_ax: int = 0
    flags: int = 0


def memmap(caller: Process, regs: SyscallRegs) -> None:
    """Run the memory operation named by regs.a1.

    IO_READ stores the signed byte read from RAM address regs.a2 into regs.a3;
    IO_WRITE stores regs.a3 at RAM address regs.a2. Unknown codes are reported
    on standard output and otherwise ignored.
    """
    memop = regs.a1
    if memop == MemOp.MAP:
        return
    if memop == MemOp.INC:
        inc_vma_limit(caller, regs.a2, regs.a3)
    elif memop == MemOp.SWP:
        mm_swap_page(caller, regs.a2, regs.a3)
    elif memop == MemOp.IO_READ:
        regs.a3 = caller.mram.read(regs.a2)
    elif memop == MemOp.IO_WRITE:
        caller.mram.write(regs.a2, regs.a3)
    else:
        print(f"Memop code: {memop}")