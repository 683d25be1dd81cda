"""Physical memory device: byte storage plus a free-frame list."""

from __future__ import annotations

from collections import deque

from simos.bits import PAGING_PAGESZ


def _to_signed_byte(value: int) -> int:
    return value - 256 if value >= 128 else value


class MemPhy:
    """A RAM or swap device holding signed bytes, split into page frames."""

    def __init__(self, max_size: int, random_access: bool = True) -> None:
        self.maxsz = max_size
        self.storage = bytearray(max_size)
        self.random_access = bool(random_access)
        self.cursor = 0
        self._free_frames: deque[int] = deque()
        if max_size // PAGING_PAGESZ > 0:
            self.format(PAGING_PAGESZ)

    @property
    def free_frames(self) -> tuple[int, ...]:
        """Free frame numbers, next to be handed out first."""
        return tuple(self._free_frames)

    def move_cursor(self, offset: int) -> None:
        """Step the sequential cursor from 0 towards offset, wrapping at the end."""
        if self.maxsz <= 0:
            self.cursor = 0
            return
        steps = max(0, min(offset, self.maxsz))
        self.cursor = steps % self.maxsz

    def _check(self, addr: int) -> None:
        if not 0 <= addr < self.maxsz:
            raise IndexError(f"address {addr} outside device of size {self.maxsz}")

    def _require_random_access(self) -> None:
        if not self.random_access:
            raise ValueError("sequential access is not supported by this device")

    def read(self, addr: int) -> int:
        """Return the signed byte stored at addr."""
        self._check(addr)
        self._require_random_access()
        return _to_signed_byte(self.storage[addr])

    def write(self, addr: int, data: int) -> None:
        """Store the low byte of data at addr."""
        self._check(addr)
        self._require_random_access()
        self.storage[addr] = data & 0xFF

    def format(self, pagesz: int) -> None:
        """Rebuild the free-frame list for frames of pagesz bytes."""
        numfp = self.maxsz // pagesz
        if numfp <= 0:
            raise ValueError(f"device of size {self.maxsz} holds no frame of {pagesz} bytes")
        self._free_frames = deque(range(numfp))

    def get_free_frame(self) -> int:
        """Take the first free frame number."""
        if not self._free_frames:
            raise IndexError("no free frame left")
        return self._free_frames.popleft()

    def put_free_frame(self, fpn: int) -> None:
        """Return a frame to the head of the free list."""
        self._free_frames.appendleft(fpn)

    def dump(self) -> str:
        """Text listing of every non-zero byte."""
        lines = ["MEMPHY_dump:"]
        lines.extend(
            f"BYTE {index:08d}: {_to_signed_byte(value) & 0xFFFFFFFF:08x}"
            for index, value in enumerate(self.storage)
            if value
        )
        return "\n".join(lines) + "\n"