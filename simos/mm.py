"""Paging memory management: page table entries, VM areas and frame mapping."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from simos.bits import (
    PAGING_MAX_PGN,
    PAGING_PAGESZ,
    PAGING_PTE_DIRTY_MASK,
    PAGING_PTE_FPN_LOBIT,
    PAGING_PTE_FPN_MASK,
    PAGING_PTE_PRESENT_MASK,
    PAGING_PTE_SWAPPED_MASK,
    PAGING_PTE_SWPOFF_LOBIT,
    PAGING_PTE_SWPOFF_MASK,
    PAGING_PTE_SWPTYP_LOBIT,
    PAGING_PTE_SWPTYP_MASK,
    page_align,
    page_number,
)
from simos.memphy import MemPhy
from simos.process import PAGING_MAX_SYMTBL_SZ, Process

_WORD = 0xFFFFFFFF


@dataclass
class Region:
    """A range of virtual addresses [rg_start, rg_end)."""

    rg_start: int = 0
    rg_end: int = 0
    vmaid: int = 0


@dataclass
class VmArea:
    """A virtual memory area with its break pointer and free regions."""

    vm_id: int
    vm_start: int = 0
    vm_end: int = 0
    sbrk: int = 0
    freerg_list: list[Region] = field(default_factory=list)


class MemoryMap:
    """Per-process paging state: page directory, VM areas, symbols, FIFO pages."""

    def __init__(self) -> None:
        self.pgd: list[int] = [0] * PAGING_MAX_PGN
        vma = VmArea(vm_id=1)
        vma.freerg_list.insert(0, Region(vma.vm_start, vma.vm_end))
        self.mmap: list[VmArea] = [vma]
        self.symrgtbl: list[Region] = [Region() for _ in range(PAGING_MAX_SYMTBL_SZ)]
        self.fifo_pgn: deque[int] = deque()

    def get_vma(self, vmaid: int) -> VmArea | None:
        """First area whose id is at least vmaid, or None."""
        for vma in self.mmap:
            if vma.vm_id >= vmaid:
                return vma
        return None

    def enlist_page(self, pgn: int) -> None:
        """Record pgn as the most recently mapped page."""
        self.fifo_pgn.appendleft(pgn)


def _setval(v: int, value: int, mask: int, offst: int) -> int:
    return ((v & ~mask) | ((value << offst) & mask)) & _WORD


def init_pte(pte: int, pre: int, fpn: int, drt: int, swp: int, swptyp: int, swpoff: int) -> int:
    """Return pte initialised as an online or swapped entry."""
    if not pre:
        return pte & _WORD
    pte |= PAGING_PTE_PRESENT_MASK
    pte &= ~PAGING_PTE_DIRTY_MASK
    if not swp:
        if fpn == 0:
            raise ValueError("an online page needs a non-zero frame number")
        pte &= ~PAGING_PTE_SWAPPED_MASK
        return _setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)
    pte |= PAGING_PTE_SWAPPED_MASK
    pte = _setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_swap(pte: int, swptyp: int, swpoff: int) -> int:
    """Return pte marked as swapped out at swpoff."""
    pte |= PAGING_PTE_PRESENT_MASK | PAGING_PTE_SWAPPED_MASK
    pte = _setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_fpn(pte: int, fpn: int) -> int:
    """Return pte marked as online in frame fpn."""
    pte |= PAGING_PTE_PRESENT_MASK
    pte &= ~PAGING_PTE_SWAPPED_MASK
    return _setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)


def vmap_page_range(caller: Process, addr: int, pgnum: int, frames: Iterable[int]) -> Region:
    """Map pgnum pages from page-aligned addr onto the given frames."""
    if pgnum <= 0:
        raise ValueError(f"cannot map {pgnum} pages")
    mm: MemoryMap = caller.mm
    pgn = page_number(addr)
    region = Region(addr, addr + pgnum * PAGING_PAGESZ - 1)
    frame_iter = iter(frames)
    for target in range(pgn, pgn + pgnum):
        if target >= PAGING_MAX_PGN:
            raise ValueError(f"page {target} beyond the page table")
        fpn = next(frame_iter, None)
        if fpn is None:
            raise MemoryError("not enough frames to map the range")
        mm.pgd[target] = pte_set_fpn(mm.pgd[target], fpn)
        mm.enlist_page(target)
    return region


def alloc_pages_range(caller: Process, req_pgnum: int) -> list[int]:
    """Take req_pgnum free frames from RAM; all or none."""
    if req_pgnum <= 0:
        raise ValueError(f"cannot allocate {req_pgnum} frames")
    ram: MemPhy = caller.mram
    frames: list[int] = []
    for _ in range(req_pgnum):
        try:
            frames.append(ram.get_free_frame())
        except IndexError:
            for fpn in frames:
                ram.put_free_frame(fpn)
            raise MemoryError("out of physical frames") from None
    return frames


def vm_map_ram(caller: Process, astart: int, aend: int, mapstart: int, incpgnum: int) -> Region:
    """Allocate incpgnum frames and map them from mapstart."""
    frames = alloc_pages_range(caller, incpgnum)
    return vmap_page_range(caller, mapstart, incpgnum, frames)


def swap_copy_page(src: MemPhy, srcfpn: int, dst: MemPhy, dstfpn: int) -> None:
    """Copy one page from frame srcfpn of src to frame dstfpn of dst."""
    src_base = srcfpn * PAGING_PAGESZ
    dst_base = dstfpn * PAGING_PAGESZ
    for cell in range(PAGING_PAGESZ):
        dst.write(dst_base + cell, src.read(src_base + cell))


def _vma(caller: Process, vmaid: int) -> VmArea:
    vma = caller.mm.get_vma(vmaid)
    if vma is None:
        raise ValueError(f"no memory area {vmaid}")
    return vma


def get_vm_area_node_at_brk(caller: Process, vmaid: int, size: int, alignedsz: int) -> Region:
    """Region of size bytes starting at the area's break pointer."""
    vma = _vma(caller, vmaid)
    return Region(vma.sbrk, vma.sbrk + size)


def validate_overlap_vm_area(caller: Process, vmaid: int, vmastart: int, vmaend: int) -> bool:
    """True when [vmastart, vmaend) overlaps no free region of the first area."""
    if not caller.mm.mmap:
        return False
    vma = caller.mm.mmap[0]
    return all(vmaend <= rg.rg_start or vmastart >= rg.rg_end for rg in vma.freerg_list)


def inc_vma_limit(caller: Process, vmaid: int, inc_sz: int) -> Region:
    """Grow the area by inc_sz bytes and back the new pages with RAM frames."""
    inc_amt = page_align(inc_sz)
    incnumpage = inc_amt // PAGING_PAGESZ
    area = get_vm_area_node_at_brk(caller, vmaid, inc_sz, inc_amt)
    vma = _vma(caller, vmaid)
    old_end = vma.vm_end
    if not validate_overlap_vm_area(caller, vmaid, area.rg_start, area.rg_end):
        raise ValueError(f"range {area.rg_start}..{area.rg_end} overlaps a free region")
    vma.vm_end += inc_sz
    return vm_map_ram(caller, area.rg_start, area.rg_end, old_end, incnumpage)


def mm_swap_page(caller: Process, vicfpn: int, swpfpn: int) -> None:
    """Copy RAM frame vicfpn into frame swpfpn of the active swap device."""
    swap_copy_page(caller.mram, vicfpn, caller.active_mswp, swpfpn)


def format_page_table(caller: Process, start: int, end: int | None) -> str:
    """Listing of page table entries from start up to end (-1 or None: area end)."""
    if caller is None:
        raise ValueError("no caller")
    if end is None or end in (-1, _WORD):
        end = _vma(caller, 0).vm_end
    lines = [f"print_pgtbl: {start} - {end}"]
    pgd = caller.mm.pgd
    lines.extend(
        f"{pgit * 4:08d}: {pgd[pgit] & _WORD:08x}"
        for pgit in range(page_number(start), page_number(end))
    )
    return "\n".join(lines) + "\n"