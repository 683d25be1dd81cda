import pytest

from simos.bits import (
    PAGING_MAX_PGN,
    PAGING_PAGESZ,
    PAGING_PTE_DIRTY_MASK,
    PAGING_PTE_SWAPPED_MASK,
    page_present,
    pte_fpn,
    pte_swpoff,
)
from simos.memphy import MemPhy
from simos.mm import (
    MemoryMap,
    Region,
    alloc_pages_range,
    format_page_table,
    get_vm_area_node_at_brk,
    inc_vma_limit,
    init_pte,
    mm_swap_page,
    pte_set_fpn,
    pte_set_swap,
    swap_copy_page,
    validate_overlap_vm_area,
    vm_map_ram,
    vmap_page_range,
)
from simos.process import Process


def make_proc(ram_frames=4, swap_frames=4):
    return Process(
        pid=1,
        mm=MemoryMap(),
        mram=MemPhy(ram_frames * PAGING_PAGESZ),
        active_mswp=MemPhy(swap_frames * PAGING_PAGESZ),
    )


def test_memory_map_initial_state():
    mm = MemoryMap()
    assert len(mm.pgd) == PAGING_MAX_PGN
    assert all(pte == 0 for pte in mm.pgd)
    assert len(mm.mmap) == 1
    vma = mm.mmap[0]
    assert (vma.vm_id, vma.vm_start, vma.vm_end, vma.sbrk) == (1, 0, 0, 0)
    assert vma.freerg_list == [Region(0, 0)]
    assert list(mm.fifo_pgn) == []


def test_get_vma_lookup():
    mm = MemoryMap()
    assert mm.get_vma(0) is mm.mmap[0]
    assert mm.get_vma(1) is mm.mmap[0]
    assert mm.get_vma(2) is None


def test_enlist_page_puts_newest_first():
    mm = MemoryMap()
    for pgn in (3, 4, 5):
        mm.enlist_page(pgn)
    assert list(mm.fifo_pgn) == [5, 4, 3]


def test_init_pte_not_present_is_unchanged():
    assert init_pte(0, 0, 9, 0, 0, 0, 0) == 0


def test_init_pte_online_requires_frame():
    with pytest.raises(ValueError):
        init_pte(0, 1, 0, 0, 0, 0, 0)


def test_init_pte_online():
    pte = init_pte(PAGING_PTE_DIRTY_MASK | PAGING_PTE_SWAPPED_MASK, 1, 5, 0, 0, 0, 0)
    assert page_present(pte)
    assert pte_fpn(pte) == 5
    assert not pte & PAGING_PTE_SWAPPED_MASK
    assert not pte & PAGING_PTE_DIRTY_MASK


def test_init_pte_swapped():
    pte = init_pte(0, 1, 0, 0, 1, 2, 77)
    assert page_present(pte)
    assert pte & PAGING_PTE_SWAPPED_MASK
    assert pte_swpoff(pte) == 77


def test_pte_set_swap_then_fpn():
    pte = pte_set_swap(0, 0, 42)
    assert pte & PAGING_PTE_SWAPPED_MASK
    assert pte_swpoff(pte) == 42
    online = pte_set_fpn(pte, 11)
    assert page_present(online)
    assert not online & PAGING_PTE_SWAPPED_MASK
    assert pte_fpn(online) == 11


def test_alloc_pages_range_takes_free_frames():
    proc = make_proc(ram_frames=4)
    frames = alloc_pages_range(proc, 3)
    assert frames == [0, 1, 2]
    assert proc.mram.free_frames == (3,)


def test_alloc_pages_range_out_of_memory_restores_frames():
    proc = make_proc(ram_frames=4)
    with pytest.raises(MemoryError):
        alloc_pages_range(proc, 5)
    assert sorted(proc.mram.free_frames) == [0, 1, 2, 3]


def test_alloc_pages_range_rejects_non_positive():
    proc = make_proc()
    with pytest.raises(ValueError):
        alloc_pages_range(proc, 0)


def test_vmap_page_range_maps_frames():
    proc = make_proc()
    region = vmap_page_range(proc, 0, 2, [7, 9])
    assert region.rg_start == 0
    assert region.rg_end == 2 * PAGING_PAGESZ - 1
    assert pte_fpn(proc.mm.pgd[0]) == 7
    assert pte_fpn(proc.mm.pgd[1]) == 9
    assert page_present(proc.mm.pgd[1])
    assert list(proc.mm.fifo_pgn) == [1, 0]


def test_vmap_page_range_errors():
    proc = make_proc()
    with pytest.raises(ValueError):
        vmap_page_range(proc, 0, 0, [1])
    with pytest.raises(MemoryError):
        vmap_page_range(proc, 0, 3, [1, 2])


def test_vm_map_ram_uses_ram_frames():
    proc = make_proc(ram_frames=4)
    region = vm_map_ram(proc, 0, PAGING_PAGESZ, PAGING_PAGESZ, 1)
    assert region.rg_start == PAGING_PAGESZ
    assert pte_fpn(proc.mm.pgd[1]) == 0
    assert proc.mram.free_frames == (1, 2, 3)


def test_get_vm_area_node_at_brk_starts_at_sbrk():
    proc = make_proc()
    proc.mm.mmap[0].sbrk = 512
    assert get_vm_area_node_at_brk(proc, 0, 100, 256) == Region(512, 612)


def test_validate_overlap():
    proc = make_proc()
    proc.mm.mmap[0].freerg_list.insert(0, Region(100, 200))
    assert validate_overlap_vm_area(proc, 0, 150, 250) is False
    assert validate_overlap_vm_area(proc, 0, 200, 300) is True
    assert validate_overlap_vm_area(proc, 0, 0, 100) is True


def test_inc_vma_limit_grows_area_and_maps_pages():
    proc = make_proc(ram_frames=4)
    region = inc_vma_limit(proc, 0, 300)
    vma = proc.mm.get_vma(0)
    assert vma.vm_end == 300
    assert region.rg_start == 0
    assert pte_fpn(proc.mm.pgd[0]) == 0
    assert pte_fpn(proc.mm.pgd[1]) == 1
    assert proc.mram.free_frames == (2, 3)


def test_inc_vma_limit_out_of_memory():
    proc = make_proc(ram_frames=4)
    with pytest.raises(MemoryError):
        inc_vma_limit(proc, 0, 5 * PAGING_PAGESZ)
    assert sorted(proc.mram.free_frames) == [0, 1, 2, 3]


def test_inc_vma_limit_overlap_rejected():
    proc = make_proc()
    proc.mm.mmap[0].freerg_list.insert(0, Region(0, 50))
    with pytest.raises(ValueError):
        inc_vma_limit(proc, 0, 100)
    assert proc.mm.get_vma(0).vm_end == 0


def test_swap_copy_page_copies_whole_frame():
    src = MemPhy(4 * PAGING_PAGESZ)
    dst = MemPhy(4 * PAGING_PAGESZ)
    payload = [(i % 100) - 50 for i in range(PAGING_PAGESZ)]
    for i, value in enumerate(payload):
        src.write(PAGING_PAGESZ + i, value)
    swap_copy_page(src, 1, dst, 2)
    copied = [dst.read(2 * PAGING_PAGESZ + i) for i in range(PAGING_PAGESZ)]
    assert copied == payload


def test_mm_swap_page_copies_ram_to_swap():
    proc = make_proc()
    proc.mram.write(3 * PAGING_PAGESZ + 7, 42)
    mm_swap_page(proc, 3, 0)
    assert proc.active_mswp.read(7) == 42


def test_format_page_table_lists_mapped_entries():
    proc = make_proc(ram_frames=4)
    inc_vma_limit(proc, 0, 2 * PAGING_PAGESZ)
    text = format_page_table(proc, 0, -1)
    lines = text.splitlines()
    assert lines[0] == f"print_pgtbl: 0 - {2 * PAGING_PAGESZ}"
    assert len(lines) == 3
    for index, line in enumerate(lines[1:]):
        offset, value = line.split(": ")
        assert int(offset) == index * 4
        assert int(value, 16) == proc.mm.pgd[index]


def test_format_page_table_requires_caller():
    with pytest.raises(ValueError):
        format_page_table(None, 0, -1)