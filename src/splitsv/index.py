"""
Spatial index of breakpoints over both of their loci

Breakpoints are grouped by the ordered pair of chromosomes they join and within that by a coarse 2-D grid of fixed
width coordinate bins (one dimension per side of the breakpoint). A distance bounded search then only has to visit the
bins neighbouring the target bin instead of every indexed breakpoint
"""
import math
import threading
from typing import Dict, Iterator, List, NamedTuple, Tuple

from .breakpoint import Breakpoint

BinKey = Tuple[int, int]
ChromosomePair = Tuple[str, str]


class IndexEntry(NamedTuple):
    position1: int
    position2: int
    breakpoint: Breakpoint


class _Grid:
    """the bins of a single chromosome pair"""

    def __init__(self):
        self.bins: Dict[BinKey, List[IndexEntry]] = {}
        self.lock = threading.Lock()
        self.size = 0


class BreakpointIndex:
    """
    Args:
        bin_size: width of the coordinate bins (the max window size)

    Example:
        >>> index = BreakpointIndex(1000)
        >>> index.insert(bp)
        >>> index.query(other_bp, 10)
        [bp]
    """

    def __init__(self, bin_size: int):
        if bin_size < 1:
            raise ValueError('bin size must be a positive integer', bin_size)
        self.bin_size = int(bin_size)
        self._grids: Dict[ChromosomePair, _Grid] = {}
        self._registry_lock = threading.Lock()

    def _bin_key(self, position1: int, position2: int) -> BinKey:
        return (position1 // self.bin_size, position2 // self.bin_size)

    def _grid(self, pair: ChromosomePair, create: bool = False):
        grid = self._grids.get(pair)
        if grid is None and create:
            with self._registry_lock:
                grid = self._grids.setdefault(pair, _Grid())
        return grid

    def insert(self, breakpoint: Breakpoint) -> IndexEntry:
        end1, end2 = breakpoint.ends
        entry = IndexEntry(end1.position, end2.position, breakpoint)
        grid = self._grid((end1.chr, end2.chr), create=True)
        with grid.lock:
            grid.bins.setdefault(self._bin_key(entry.position1, entry.position2), []).append(entry)
            grid.size += 1
        return entry

    def remove(self, breakpoint: Breakpoint) -> bool:
        """
        Returns:
            True if the breakpoint was indexed (and is now removed)
        """
        end1, end2 = breakpoint.ends
        grid = self._grid((end1.chr, end2.chr))
        if grid is None:
            return False
        key = self._bin_key(end1.position, end2.position)
        with grid.lock:
            bucket = grid.bins.get(key, [])
            for i, entry in enumerate(bucket):
                if entry.breakpoint is breakpoint:
                    del bucket[i]
                    if not bucket:
                        del grid.bins[key]
                    grid.size -= 1
                    return True
        return False

    def query(self, breakpoint: Breakpoint, distance: int) -> List[Breakpoint]:
        """
        find the indexed breakpoints on the same chromosome pair with both positions within a given distance of the
        positions of the input breakpoint

        Note:
            bins within ceil(distance / bin_size) of the target bin are scanned in each dimension since a pair of
            matching breakpoints may straddle a bin boundary
        """
        end1, end2 = breakpoint.ends
        return [
            entry.breakpoint
            for entry in self.query_position(end1.chr, end1.position, end2.chr, end2.position, distance)
        ]

    def query_position(
        self, chr1: str, position1: int, chr2: str, position2: int, distance: int
    ) -> List[IndexEntry]:
        if distance < 0:
            raise ValueError('distance cannot be negative', distance)
        grid = self._grid((chr1, chr2))
        if grid is None:
            return []
        reach = int(math.ceil(distance / self.bin_size))
        bin1, bin2 = self._bin_key(position1, position2)
        result = []
        with grid.lock:
            for i in range(bin1 - reach, bin1 + reach + 1):
                for j in range(bin2 - reach, bin2 + reach + 1):
                    for entry in grid.bins.get((i, j), []):
                        if (
                            abs(entry.position1 - position1) <= distance
                            and abs(entry.position2 - position2) <= distance
                        ):
                            result.append(entry)
        return result

    def chromosome_pairs(self) -> List[ChromosomePair]:
        return sorted(self._grids)

    def __len__(self):
        return sum(grid.size for grid in list(self._grids.values()))

    def __iter__(self) -> Iterator[Breakpoint]:
        for pair in self.chromosome_pairs():
            grid = self._grids[pair]
            with grid.lock:
                entries = [entry for bucket in grid.bins.values() for entry in bucket]
            for entry in entries:
                yield entry.breakpoint
