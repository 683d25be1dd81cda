"""Loading process descriptions into process control blocks."""

from __future__ import annotations

import itertools
from collections import deque
from pathlib import Path

from simos.process import Instruction, Opcode, Process

_WORD = 0xFFFFFFFF
_OPCODES = {op.name.lower(): op for op in Opcode}
_ARG_COUNTS = {
    Opcode.CALC: 0,
    Opcode.ALLOC: 2,
    Opcode.FREE: 1,
    Opcode.READ: 3,
    Opcode.WRITE: 3,
}
_pids = itertools.count(1)


class LoaderError(Exception):
    """A process description could not be read or parsed."""


def parse_opcode(name: str) -> Opcode:
    """Opcode for an instruction mnemonic."""
    try:
        return _OPCODES[name]
    except KeyError:
        raise LoaderError(f"unknown opcode: {name}") from None


def _uint(token: str) -> int:
    try:
        return int(token) & _WORD
    except ValueError:
        raise LoaderError(f"expected a number, got {token!r}") from None


def _take(tokens: deque[tuple[int, str]], what: str) -> str:
    if not tokens:
        raise LoaderError(f"unexpected end of program while reading {what}")
    return tokens.popleft()[1]


def _syscall_args(tokens: deque[tuple[int, str]], lineno: int) -> list[int]:
    rest: list[str] = []
    while tokens and tokens[0][0] == lineno:
        rest.append(tokens.popleft()[1])
    args: list[int] = []
    for token in rest[:4]:
        try:
            args.append(int(token) & _WORD)
        except ValueError:
            break
    return args


def parse_program(text: str, path: str = "") -> Process:
    """Build a new process from the text of a process description."""
    pid = next(_pids)
    tokens = deque(
        (lineno, token)
        for lineno, line in enumerate(text.splitlines())
        for token in line.split()
    )
    priority = _uint(_take(tokens, "priority"))
    size = _uint(_take(tokens, "code size"))

    code: list[Instruction] = []
    for _ in range(size):
        if not tokens:
            raise LoaderError("unexpected end of program while reading an opcode")
        lineno, name = tokens.popleft()
        opcode = parse_opcode(name)
        if opcode is Opcode.SYSCALL:
            args = _syscall_args(tokens, lineno)
        else:
            args = [_uint(_take(tokens, name)) for _ in range(_ARG_COUNTS[opcode])]
        code.append(Instruction(opcode, *args))

    return Process(pid=pid, priority=priority, path=path, code=code)


def load(path: str | Path) -> Process:
    """Read and parse the process description stored at path."""
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise LoaderError(f"Cannot find process description at '{path}'") from exc
    return parse_program(text, str(path))