"""Bit helpers and the paging address/PTE layout."""

from __future__ import annotations

BITS_PER_LONG = 32
BITS_PER_BYTE = 8
_WORD = (1 << BITS_PER_LONG) - 1


def div_round_up(n: int, d: int) -> int:
    """Integer division rounding up."""
    return (n + d - 1) // d


def genmask(h: int, l: int) -> int:
    """Contiguous 32-bit mask covering bits l..h inclusive."""
    if not 0 <= l <= h < BITS_PER_LONG:
        raise ValueError(f"invalid bit range {h}..{l}")
    return ((_WORD << l) & _WORD) & (_WORD >> (BITS_PER_LONG - h - 1))


def nbits(n: int) -> int:
    """Index of the highest set bit of a 32-bit value, 0 for 0."""
    n &= _WORD
    return n.bit_length() - 1 if n else 0


def extract_bits(value: int, h: int, l: int) -> int:
    """Bits l..h of value, shifted down to bit 0."""
    return (value & genmask(h, l)) >> l


PAGING_CPU_BUS_WIDTH = 22
PAGING_PAGESZ = 256
PAGING_MEMRAMSZ = 1 << 21
PAGING_MEMSWPSZ = 1 << 29
PAGING_SWPFPN_OFFSET = 5
PAGING_MAX_PGN = div_round_up(1 << PAGING_CPU_BUS_WIDTH, PAGING_PAGESZ)
PAGING_SBRK_INIT_SZ = PAGING_PAGESZ

PAGING_PTE_PRESENT_MASK = 1 << 31
PAGING_PTE_SWAPPED_MASK = 1 << 30
PAGING_PTE_RESERVE_MASK = 1 << 29
PAGING_PTE_DIRTY_MASK = 1 << 28
PAGING_PTE_EMPTY01_MASK = 1 << 14
PAGING_PTE_EMPTY02_MASK = 1 << 13

PAGING_PTE_USRNUM_LOBIT = 15
PAGING_PTE_USRNUM_HIBIT = 27
PAGING_PTE_FPN_LOBIT = 0
PAGING_PTE_FPN_HIBIT = 12
PAGING_PTE_SWPTYP_LOBIT = 0
PAGING_PTE_SWPTYP_HIBIT = 4
PAGING_PTE_SWPOFF_LOBIT = 5
PAGING_PTE_SWPOFF_HIBIT = 25

PAGING_PTE_USRNUM_MASK = genmask(PAGING_PTE_USRNUM_HIBIT, PAGING_PTE_USRNUM_LOBIT)
PAGING_PTE_FPN_MASK = genmask(PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT)
PAGING_PTE_SWPTYP_MASK = genmask(PAGING_PTE_SWPTYP_HIBIT, PAGING_PTE_SWPTYP_LOBIT)
PAGING_PTE_SWPOFF_MASK = genmask(PAGING_PTE_SWPOFF_HIBIT, PAGING_PTE_SWPOFF_LOBIT)

PAGING_ADDR_OFFST_LOBIT = 0
PAGING_ADDR_OFFST_HIBIT = nbits(PAGING_PAGESZ) - 1
PAGING_ADDR_PGN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_PGN_HIBIT = PAGING_CPU_BUS_WIDTH - 1
PAGING_ADDR_FPN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_FPN_HIBIT = nbits(PAGING_MEMRAMSZ) - 1
PAGING_SWP_LOBIT = nbits(PAGING_PAGESZ)
PAGING_SWP_HIBIT = nbits(PAGING_MEMSWPSZ) - 1

PAGING_OFFST_MASK = genmask(PAGING_ADDR_OFFST_HIBIT, PAGING_ADDR_OFFST_LOBIT)
PAGING_PGN_MASK = genmask(PAGING_ADDR_PGN_HIBIT, PAGING_ADDR_PGN_LOBIT)
PAGING_FPN_MASK = genmask(PAGING_ADDR_FPN_HIBIT, PAGING_ADDR_FPN_LOBIT)
PAGING_SWP_MASK = genmask(PAGING_SWP_HIBIT, PAGING_SWP_LOBIT)


def page_align(size: int) -> int:
    """Round size up to a whole number of pages."""
    return div_round_up(size, PAGING_PAGESZ) * PAGING_PAGESZ


def page_number(addr: int) -> int:
    """Page number of a virtual address."""
    return (addr & PAGING_PGN_MASK) >> PAGING_ADDR_PGN_LOBIT


def page_offset(addr: int) -> int:
    """Offset of a virtual address inside its page."""
    return (addr & PAGING_OFFST_MASK) >> PAGING_ADDR_OFFST_LOBIT


def page_present(pte: int) -> bool:
    """Whether the present bit of a page table entry is set."""
    return bool(pte & PAGING_PTE_PRESENT_MASK)


def pte_fpn(pte: int) -> int:
    """Frame number stored in a page table entry."""
    return (pte & PAGING_PTE_FPN_MASK) >> PAGING_PTE_FPN_LOBIT


def pte_swpoff(pte: int) -> int:
    """Swap offset stored in a page table entry."""
    return (pte & PAGING_PTE_SWPOFF_MASK) >> PAGING_SWPFPN_OFFSET