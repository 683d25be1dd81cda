import pytest

from simos.bits import PAGING_PAGESZ
from simos.cpu import run
from simos.libmem import read_region
from simos.memphy import MemPhy
from simos.mm import MemoryMap
from simos.process import Instruction, Opcode, Process
from simos.sysmem import MemOp


def _proc(code):
    return Process(
        pid=1,
        code=list(code),
        mm=MemoryMap(),
        mram=MemPhy(PAGING_PAGESZ * 16),
        active_mswp=MemPhy(PAGING_PAGESZ * 4),
    )


def test_finished_process_does_nothing():
    proc = _proc([])
    assert run(proc) is False
    assert proc.pc == 0


def test_calc_advances_pc():
    proc = _proc([Instruction(Opcode.CALC), Instruction(Opcode.CALC)])
    assert run(proc) is True
    assert proc.pc == 1
    assert run(proc) is True
    assert run(proc) is False
    assert proc.pc == 2


def test_alloc_sets_symbol_region():
    proc = _proc([Instruction(Opcode.ALLOC, 300, 1)])
    run(proc)
    region = proc.mm.symrgtbl[1]
    assert region.rg_end - region.rg_start == 300


def test_write_then_read_round_trip(capsys):
    proc = _proc(
        [
            Instruction(Opcode.ALLOC, 300, 1),
            Instruction(Opcode.WRITE, 65, 1, 2),
            Instruction(Opcode.READ, 1, 2, 0),
        ]
    )
    while run(proc):
        pass
    assert read_region(proc, 0, 1, 2) == 65
    assert "read region=1 offset=2 value=65" in capsys.readouterr().out


def test_syscall_instruction_reaches_memmap():
    proc = _proc([Instruction(Opcode.SYSCALL, 17, MemOp.IO_WRITE, 10, 7)])
    run(proc)
    assert proc.mram.read(10) == 7


def test_invalid_free_register_raises():
    proc = _proc([Instruction(Opcode.FREE, 99)])
    with pytest.raises(ValueError):
        run(proc)
    assert proc.pc == 1