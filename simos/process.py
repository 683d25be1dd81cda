"""Process control block and instruction types shared by the simulator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

ADDRESS_SIZE = 20
OFFSET_LEN = 10
FIRST_LV_LEN = 5
SECOND_LV_LEN = 5
SEGMENT_LEN = FIRST_LV_LEN
PAGE_LEN = SECOND_LV_LEN

NUM_PAGES = 1 << (ADDRESS_SIZE - OFFSET_LEN)
PAGE_SIZE = 1 << OFFSET_LEN

MAX_PRIO = 140
PAGING_MAX_MMSWP = 4
PAGING_MAX_SYMTBL_SZ = 30
REGISTER_COUNT = 10


class Opcode(IntEnum):
    """Instructions understood by the simulated CPU."""

    CALC = 0
    ALLOC = 1
    FREE = 2
    READ = 3
    WRITE = 4
    SYSCALL = 5


@dataclass(frozen=True)
class Instruction:
    """One instruction of a process's code segment."""

    opcode: Opcode
    arg_0: int = 0
    arg_1: int = 0
    arg_2: int = 0
    arg_3: int = 0


@dataclass(eq=False)
class Process:
    """State of a simulated process."""

    pid: int
    priority: int = 0
    path: str = ""
    code: list[Instruction] = field(default_factory=list)
    regs: list[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    pc: int = 0
    prio: int = 0
    mm: Any = None
    mram: Any = None
    mswp: list[Any] = field(default_factory=list)
    active_mswp: Any = None
    active_mswp_id: int = 0
    vmemsz: int = 0
    bp: int = PAGE_SIZE
    ready_queue: Any = None
    running_list: Any = None
    mlq_ready_queue: Any = None

    @property
    def finished(self) -> bool:
        """True once the program counter has passed the last instruction."""
        return self.pc >= len(self.code)