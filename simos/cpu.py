"""Instruction execution for the simulated CPU."""

from __future__ import annotations

from simos.libmem import liballoc, libfree, libread, libwrite
from simos.process import Instruction, Opcode, Process
from simos.syscall import libsyscall


def _execute(proc: Process, ins: Instruction) -> None:
    if ins.opcode is Opcode.CALC:
        return
    if ins.opcode is Opcode.ALLOC:
        liballoc(proc, ins.arg_0, ins.arg_1)
    elif ins.opcode is Opcode.FREE:
        libfree(proc, ins.arg_0)
    elif ins.opcode is Opcode.READ:
        libread(proc, ins.arg_0, ins.arg_1)
    elif ins.opcode is Opcode.WRITE:
        libwrite(proc, ins.arg_0, ins.arg_1, ins.arg_2)
    elif ins.opcode is Opcode.SYSCALL:
        libsyscall(proc, ins.arg_0, ins.arg_1, ins.arg_2, ins.arg_3)
    else:
        raise ValueError(f"unknown opcode {ins.opcode!r}")


def run(proc: Process) -> bool:
    """Execute the next instruction of proc.

    Returns False, doing nothing, when the program counter is past the end of
    the code; otherwise advances the counter, executes and returns True.
    """
    if proc.finished:
        return False
    ins = proc.code[proc.pc]
    proc.pc += 1
    _execute(proc, ins)
    return True