"""Process-level memory library: region allocation, paging access and swapping."""

from __future__ import annotations

from simos.bits import (
    PAGING_ADDR_FPN_LOBIT,
    PAGING_MAX_PGN,
    page_align,
    page_number,
    page_offset,
    page_present,
    pte_fpn,
    pte_swpoff,
)
from simos.mm import (
    MemoryMap,
    Region,
    VmArea,
    format_page_table,
    inc_vma_limit,
    pte_set_fpn,
    pte_set_swap,
    swap_copy_page,
)
from simos.process import PAGING_MAX_SYMTBL_SZ, Process
from simos.sysmem import MemOp, SyscallRegs, memmap


def _signed_byte(value: int) -> int:
    return ((value & 0xFF) ^ 0x80) - 0x80


def enlist_vm_freerg_list(mm: MemoryMap, rg: Region) -> None:
    """Put a non-empty region at the head of the first area's free list."""
    if rg.rg_start >= rg.rg_end:
        raise ValueError(f"empty region {rg.rg_start}..{rg.rg_end}")
    mm.mmap[0].freerg_list.insert(0, rg)


def get_symrg_byid(mm: MemoryMap, rgid: int) -> Region | None:
    """Symbol-table region with id rgid, or None when the id is out of range."""
    if not 0 <= rgid < PAGING_MAX_SYMTBL_SZ:
        return None
    return mm.symrgtbl[rgid]


def _vma(caller: Process, vmaid: int) -> VmArea:
    vma = caller.mm.get_vma(vmaid)
    if vma is None:
        raise ValueError(f"no memory area {vmaid}")
    return vma


def _symbol(caller: Process, rgid: int) -> Region:
    region = get_symrg_byid(caller.mm, rgid)
    if region is None:
        raise ValueError(f"invalid region id {rgid}")
    return region


def get_free_vmrg_area(caller: Process, vmaid: int, size: int) -> Region | None:
    """Carve size bytes from the first free region large enough, or return None."""
    freelist = _vma(caller, vmaid).freerg_list
    for index, rg in enumerate(freelist):
        if rg.rg_start + size > rg.rg_end:
            continue
        found = Region(rg.rg_start, rg.rg_start + size)
        if rg.rg_start + size < rg.rg_end:
            rg.rg_start += size
        elif index + 1 < len(freelist):
            del freelist[index]
        else:
            rg.rg_start = rg.rg_end
        return found
    return None


def alloc_region(caller: Process, vmaid: int, rgid: int, size: int) -> int:
    """Allocate size bytes for symbol rgid and return its start address."""
    symbol = _symbol(caller, rgid)
    found = get_free_vmrg_area(caller, vmaid, size)
    if found is not None:
        symbol.rg_start, symbol.rg_end = found.rg_start, found.rg_end
        return found.rg_start

    vma = _vma(caller, vmaid)
    inc_sz = page_align(size)
    old_sbrk = vma.sbrk
    print(f"old_sbrk: {old_sbrk}")

    inc_vma_limit(caller, vmaid, inc_sz)
    if inc_sz > size:
        leftover = Region(size + old_sbrk + 1, inc_sz + old_sbrk)
        if leftover.rg_start < leftover.rg_end:
            enlist_vm_freerg_list(caller.mm, leftover)
    vma.sbrk += inc_sz
    symbol.rg_start, symbol.rg_end = old_sbrk, old_sbrk + size
    print(f"alloc_addr: {old_sbrk}")
    return old_sbrk


def free_region(caller: Process, vmaid: int, rgid: int) -> None:
    """Return the region of symbol rgid to the free list."""
    symbol = _symbol(caller, rgid)
    if symbol.rg_start < symbol.rg_end:
        enlist_vm_freerg_list(caller.mm, Region(symbol.rg_start, symbol.rg_end))


def liballoc(proc: Process, size: int, reg_index: int) -> int:
    """Allocate size bytes in area 0 for register reg_index."""
    return alloc_region(proc, 0, reg_index, size)


def libfree(proc: Process, reg_index: int) -> None:
    """Free the area-0 region held by register reg_index."""
    free_region(proc, 0, reg_index)


def find_victim_page(mm: MemoryMap) -> int:
    """Remove and return the oldest page of the FIFO list."""
    if not mm.fifo_pgn:
        raise IndexError("no page to evict")
    return mm.fifo_pgn.pop()


def pg_getpage(mm: MemoryMap, pgn: int, caller: Process) -> int:
    """Frame number holding page pgn, swapping it into RAM first if needed."""
    pte = mm.pgd[pgn]
    if not page_present(pte):
        vicpgn = find_victim_page(caller.mm)
        vicfpn = pte_fpn(mm.pgd[vicpgn])
        swpfpn = caller.active_mswp.get_free_frame()

        memmap(caller, SyscallRegs(a1=MemOp.SWP, a2=vicfpn, a3=swpfpn))
        mm.pgd[vicpgn] = pte_set_swap(mm.pgd[vicpgn], 0, swpfpn)

        tgtfpn = vicfpn
        swap_copy_page(caller.active_mswp, pte_swpoff(pte), caller.mram, tgtfpn)
        mm.pgd[pgn] = pte_set_fpn(mm.pgd[pgn], tgtfpn)
        caller.mm.enlist_page(pgn)
    return pte_fpn(mm.pgd[pgn])


def _physical_address(mm: MemoryMap, addr: int, caller: Process) -> int:
    fpn = pg_getpage(mm, page_number(addr), caller)
    return (fpn << PAGING_ADDR_FPN_LOBIT) + page_offset(addr)


def pg_getval(mm: MemoryMap, addr: int, caller: Process) -> int:
    """Signed byte stored at virtual address addr."""
    regs = SyscallRegs(a1=MemOp.IO_READ, a2=_physical_address(mm, addr, caller))
    memmap(caller, regs)
    return regs.a3


def pg_setval(mm: MemoryMap, addr: int, value: int, caller: Process) -> None:
    """Store a byte at virtual address addr."""
    regs = SyscallRegs(
        a1=MemOp.IO_WRITE, a2=_physical_address(mm, addr, caller), a3=value
    )
    memmap(caller, regs)


def read_region(caller: Process, vmaid: int, rgid: int, offset: int) -> int:
    """Byte at offset inside the region of symbol rgid."""
    region = _symbol(caller, rgid)
    _vma(caller, vmaid)
    return pg_getval(caller.mm, region.rg_start + offset, caller)


def write_region(caller: Process, vmaid: int, rgid: int, offset: int, value: int) -> None:
    """Store value at offset inside the region of symbol rgid."""
    region = _symbol(caller, rgid)
    _vma(caller, vmaid)
    pg_setval(caller.mm, region.rg_start + offset, value, caller)


def _dump_state(proc: Process) -> None:
    print(format_page_table(proc, 0, -1), end="")
    print(proc.mram.dump(), end="")


def libread(proc: Process, source: int, offset: int) -> int:
    """Read a byte from register source's region and report the memory state."""
    data = read_region(proc, 0, source, offset)
    print(f"read region={source} offset={offset} value={data}")
    _dump_state(proc)
    return data


def libwrite(proc: Process, data: int, destination: int, offset: int) -> None:
    """Report the memory state, then write a byte into register destination's region."""
    print(f"write region={destination} offset={offset} value={_signed_byte(data)}")
    _dump_state(proc)
    write_region(proc, 0, destination, offset, data)


def free_pcb_memph(caller: Process) -> None:
    """Hand every page's frame back to RAM or to the active swap device."""
    pgd = caller.mm.pgd
    for pagenum in range(PAGING_MAX_PGN):
        pte = pgd[pagenum]
        if not page_present(pte):
            caller.mram.put_free_frame(pte_fpn(pte))
        else:
            caller.active_mswp.put_free_frame(pte_swpoff(pte))